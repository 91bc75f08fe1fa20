"""Main Typer application — imports and registers all CLI commands.

Entry point: ``buildindex`` (configured via pyproject.toml scripts).
"""

from __future__ import annotations

import logging

import typer
from rich.logging import RichHandler

from buildindex.cli.commands.build import build_cmd
from buildindex.cli.commands.incomplete import incomplete_cmd
from buildindex.cli.commands.latest import latest_cmd
from buildindex.cli.commands.publish import publish_cmd
from buildindex.config import IndexerConfig

app = typer.Typer(
    name="buildindex",
    help="buildindex: incremental CI build database for a source branch.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)

# Register subcommands
app.command(name="build", help="Fetch new CI data and update the database.")(build_cmd)
app.command(name="latest", help="Show the latest build of every artifact.")(latest_cmd)
app.command(name="incomplete", help="List runs still awaiting artifacts.")(incomplete_cmd)
app.command(name="publish", help="Regenerate redirect pages from the database.")(publish_cmd)


def configure_logging(level: str) -> None:
    """Route log records through Rich at *level* (e.g. ``INFO``)."""
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
        force=True,
    )


@app.callback()
def main_callback(
    log_level: str = typer.Option(
        None,
        "--log-level",
        help="Logging level (default: BUILDINDEX_LOG_LEVEL or INFO).",
    ),
) -> None:
    """buildindex: incremental CI build database for a source branch."""
    configure_logging(log_level or IndexerConfig().log_level)


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
