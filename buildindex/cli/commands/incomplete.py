"""``buildindex incomplete OWNER REPO BRANCH`` — runs still awaiting artifacts."""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from buildindex.cli.commands._options import BRANCH, OWNER, REPO, data_dir_option, resolve_config
from buildindex.core.queries import get_incomplete_runs
from buildindex.store.snapshot_store import SnapshotStore

console = Console()


def incomplete_cmd(
    owner: str = OWNER,
    repo: str = REPO,
    branch: str = BRANCH,
    completed_only: bool = typer.Option(
        False,
        "--completed-only",
        "-c",
        help="Only list runs whose check suite has completed.",
    ),
    data_dir: Path = data_dir_option(),
) -> None:
    """List workflow runs whose artifact list is still empty."""
    config = resolve_config(data_dir=data_dir)
    snapshot, result = SnapshotStore(config.data_dir).load(owner, repo, branch)
    if not result.ok:
        console.print(f"[bold red]Database unreadable:[/bold red] {result.message}")
        raise typer.Exit(code=result.kind.exit_code if result.kind else 1)

    run_ids = get_incomplete_runs(snapshot, completed_only=completed_only)
    if not run_ids:
        console.print("[green]Every run has its artifacts.[/green]")
        return

    table = Table(title=f"Runs awaiting artifacts ({len(run_ids)})")
    table.add_column("Run ID", style="cyan", justify="right")
    table.add_column("Workflow")
    table.add_column("Status")
    table.add_column("Conclusion")

    for run_id in run_ids:
        run = snapshot.runs[run_id]
        check = snapshot.owning_check(run_id)
        table.add_row(
            str(run_id),
            run.name,
            check.status if check else "",
            (check.conclusion or "") if check else "",
        )
    console.print(table)
