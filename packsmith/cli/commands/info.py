"""``packsmith pipelines`` and ``packsmith cache`` — informational listings."""

from __future__ import annotations

from rich.console import Console
from rich.table import Table

from packsmith.config import BuildSettings
from packsmith.core.content_cache import ContentCache
from packsmith.stages import PIPELINES, STAGE_REGISTRY, get_stage

console = Console()


def pipelines_cmd() -> None:
    """Show each named pipeline's stages in execution order."""
    for name, stage_ids in PIPELINES.items():
        table = Table(title=f"Pipeline: {name}")
        table.add_column("#", justify="right", style="dim")
        table.add_column("Stage ID", style="cyan")
        table.add_column("Name")
        for index, stage_id in enumerate(stage_ids, start=1):
            table.add_row(str(index), stage_id, get_stage(stage_id).display_name)
        console.print(table)
    console.print(f"[dim]{len(STAGE_REGISTRY)} registered stages[/dim]")


def cache_cmd() -> None:
    """List every verified artifact in the dependency cache."""
    paths = BuildSettings().to_paths()
    if not paths.cache_dir.is_dir():
        console.print(f"[dim]No cache at {paths.cache_dir}.[/dim]")
        return
    with ContentCache(paths.cache_dir) as cache:
        entries = cache.entries()

    if not entries:
        console.print(f"[dim]Cache at {paths.cache_dir} is empty.[/dim]")
        return

    table = Table(title=f"Dependency cache ({paths.cache_dir})")
    table.add_column("Algorithm", style="cyan")
    table.add_column("Digest", style="green")
    table.add_column("Size", justify="right")
    for entry in entries:
        table.add_row(entry.algorithm, entry.digest, f"{entry.size_bytes:,}")
    console.print(table)
