"""``buildindex latest OWNER REPO BRANCH`` — show the latest build per artifact.

Read-only: the table is a projection of the stored snapshot, recomputed
from its commits, checks and runs rather than read from ``latest``.
"""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console

from buildindex.cli.commands._options import BRANCH, OWNER, REPO, data_dir_option, resolve_config
from buildindex.cli.render import SnapshotRenderer
from buildindex.core.latest import refresh_latest
from buildindex.store.snapshot_store import SnapshotStore

console = Console()


def latest_cmd(
    owner: str = OWNER,
    repo: str = REPO,
    branch: str = BRANCH,
    data_dir: Path = data_dir_option(),
) -> None:
    """Show the newest available build of every artifact."""
    config = resolve_config(data_dir=data_dir)
    store = SnapshotStore(config.data_dir)

    snapshot, result = store.load(owner, repo, branch)
    if not result.ok:
        console.print(f"[bold red]Database unreadable:[/bold red] {result.message}")
        raise typer.Exit(code=result.kind.exit_code if result.kind else 1)
    if not snapshot.commits:
        console.print(f"[bold red]No database for[/bold red] {owner}/{repo} ({branch})")
        console.print("[dim]Create one first with: buildindex build[/dim]")
        raise typer.Exit(code=1)

    refresh_latest(snapshot)
    SnapshotRenderer(console=console).print_latest(snapshot, f"{owner}/{repo}", branch)
