"""``buildindex publish OWNER REPO BRANCH`` — regenerate redirect pages.

Works from the stored snapshot only; no remote requests are made.
"""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console

from buildindex.cli.commands._options import BRANCH, OWNER, REPO, data_dir_option, resolve_config
from buildindex.core.errors import BuildIndexError
from buildindex.core.latest import refresh_latest
from buildindex.publish.redirects import RedirectPublisher
from buildindex.store.snapshot_store import SnapshotStore

console = Console()


def publish_cmd(
    owner: str = OWNER,
    repo: str = REPO,
    branch: str = BRANCH,
    data_dir: Path = data_dir_option(),
    publish_dir: Path = typer.Option(
        None,
        "--publish-dir",
        "-o",
        help="Root of the published site (default: out).",
    ),
) -> None:
    """Write one redirect page per latest artifact."""
    config = resolve_config(data_dir=data_dir, publish_dir=publish_dir)
    snapshot, result = SnapshotStore(config.data_dir).load(owner, repo, branch)
    if not result.ok:
        console.print(f"[bold red]Database unreadable:[/bold red] {result.message}")
        raise typer.Exit(code=result.kind.exit_code if result.kind else 1)

    refresh_latest(snapshot)
    try:
        pages = RedirectPublisher(config.publish_dir).publish(snapshot, owner, repo, branch)
    except BuildIndexError as exc:
        console.print(f"[bold red]Publishing failed:[/bold red] {exc}")
        raise typer.Exit(code=exc.kind.exit_code)

    console.print(f"[green]Published {len(pages)} redirect page(s)[/green] to {config.publish_dir}")
