"""Main Typer application — imports and registers all CLI commands.

Entry point: ``packsmith`` (configured via pyproject.toml scripts).
"""

from __future__ import annotations

import logging

import typer
from rich.logging import RichHandler

from packsmith.cli.commands.build import build_cmd, typo_build_cmd
from packsmith.cli.commands.info import cache_cmd, pipelines_cmd
from packsmith.config import BuildSettings

app = typer.Typer(
    name="packsmith",
    help="Packsmith: deterministic, fail-fast modpack builds.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)


@app.callback()
def _configure_logging() -> None:
    """Install a Rich log handler at the configured level."""
    level = BuildSettings().log_level.upper()
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=False, show_path=False)],
        force=True,
    )


# Register subcommands
app.command(name="build", help="Run the full build pipeline.")(build_cmd)
app.command(name="typo-build", help="Run the reduced typo-fix pipeline.")(typo_build_cmd)
app.command(name="pipelines", help="List the stages of each named pipeline.")(pipelines_cmd)
app.command(name="cache", help="List artifacts held in the dependency cache.")(cache_cmd)


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
