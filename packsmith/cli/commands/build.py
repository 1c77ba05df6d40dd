"""``packsmith build`` / ``packsmith typo-build`` — run a named pipeline.

Both commands are parameterless; configuration comes from PACKSMITH_*
environment variables or ``.env``. A failing stage exits with status 1
and names the stage and its cause.
"""

from __future__ import annotations

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from packsmith.core.orchestrator import Orchestrator
from packsmith.errors import PacksmithError, StageError
from packsmith.models.pipeline import PipelineRun, StageStatus

console = Console()

_STATUS_STYLE = {
    StageStatus.PASSED: "[green]passed[/green]",
    StageStatus.SKIPPED: "[yellow]skipped[/yellow]",
    StageStatus.FAILED: "[red]failed[/red]",
}


def _render_run(run: PipelineRun) -> None:
    table = Table(title=f"Pipeline {run.pipeline_name} ({run.run_id})")
    table.add_column("Stage", style="cyan")
    table.add_column("Status", justify="center")
    table.add_column("Duration", justify="right")
    table.add_column("Output hash", style="dim")
    for record in run.records:
        table.add_row(
            record.display_name,
            _STATUS_STYLE[record.status],
            f"{record.duration_seconds:.2f}s",
            record.output_hash[:12],
        )
    console.print(table)

    links = run.context.published_links
    console.print(
        Panel(
            "\n".join([
                "[bold green]Build complete![/bold green]",
                "",
                f"[bold]Output:[/bold]        {run.context.paths.shared_dest_dir}",
                f"[bold]Dependencies:[/bold]  {len(links)} published",
                f"[bold]Skipped:[/bold]       {run.skipped_count} stage(s)",
            ]),
            title="[bold]Packsmith[/bold]",
            border_style="green",
            padding=(1, 2),
        )
    )


def _run_pipeline(name: str) -> None:
    try:
        with Orchestrator() as orchestrator:
            run = orchestrator.run_named(name)
    except StageError as exc:
        console.print(
            f"[bold red]Stage {exc.stage_id} failed:[/bold red] "
            f"{type(exc.cause).__name__}: {exc.cause}"
        )
        raise typer.Exit(code=1) from exc
    except PacksmithError as exc:
        console.print(f"[bold red]Build setup failed:[/bold red] {exc}")
        raise typer.Exit(code=1) from exc
    _render_run(run)


def build_cmd() -> None:
    """Run the full build: cleanup through quest-book transform."""
    _run_pipeline("build")


def typo_build_cmd() -> None:
    """Run the reduced typo-fix build: cleanup, overrides, quest book."""
    _run_pipeline("typo-build")
