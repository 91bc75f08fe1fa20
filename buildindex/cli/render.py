"""Rich terminal rendering for snapshots and batch reports."""

from __future__ import annotations

import re

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from buildindex.core.orchestrator import BatchReport
from buildindex.models.snapshot import LatestArtifactRef, Snapshot

_WORKFLOW_SORT_RE = re.compile(r"[^a-zA-Z0-9_\- ]+")


def humanize_bytes(size: int) -> str:
    """Format a byte count with a binary unit, e.g. ``1.5 MiB``."""
    value = float(size)
    for unit in ("B", "KiB", "MiB", "GiB"):
        if value < 1024 or unit == "GiB":
            return f"{value:.0f} {unit}" if unit == "B" else f"{value:.1f} {unit}"
        value /= 1024
    return f"{size} B"


def _workflow_key(name: str) -> str:
    return _WORKFLOW_SORT_RE.sub("", name).strip().lower()


def group_by_workflow(
    latest: dict[str, LatestArtifactRef],
) -> list[tuple[str, list[LatestArtifactRef]]]:
    """Group latest entries by workflow, ordered by sanitized workflow name."""
    groups: dict[str, list[LatestArtifactRef]] = {}
    for ref in latest.values():
        groups.setdefault(ref.workflow_name, []).append(ref)
    return sorted(groups.items(), key=lambda item: _workflow_key(item[0]))


class SnapshotRenderer:
    """Prints snapshots and batch reports.

    Parameters
    ----------
    console:
        Rich Console instance.  A new one is created if not provided.
    """

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()

    def latest_table(self, snapshot: Snapshot, repository: str, branch: str) -> Table:
        table = Table(title=f"Latest builds: {repository} ({branch})")
        table.add_column("Workflow", style="cyan")
        table.add_column("Artifact", style="bold")
        table.add_column("Size", justify="right")
        table.add_column("Commit", style="green")
        table.add_column("Check suite", justify="right", style="dim")

        for workflow_name, refs in group_by_workflow(snapshot.latest):
            for position, ref in enumerate(refs):
                table.add_row(
                    workflow_name if position == 0 else "",
                    ref.artifact_name,
                    humanize_bytes(ref.artifact_size),
                    ref.commit_hash[:9],
                    str(ref.check_id),
                )
        return table

    def print_latest(self, snapshot: Snapshot, repository: str, branch: str) -> None:
        if not snapshot.latest:
            self.console.print("[dim]No artifacts available.[/dim]")
            return
        self.console.print(self.latest_table(snapshot, repository, branch))

    def report_panel(self, report: BatchReport) -> Panel:
        lines = [
            f"[bold]Repository:[/bold]  {report.owner}/{report.repo}",
            f"[bold]Branch:[/bold]      {report.branch}",
            f"[bold]Commits:[/bold]     {report.commits_merged} merged, {report.commit_count} stored",
            f"[bold]Runs polled:[/bold] {report.runs_polled}",
            f"[bold]Artifacts:[/bold]   {report.artifacts_merged} new, {report.artifact_count} stored",
            f"[bold]Latest:[/bold]      {report.latest_count} artifact name(s)",
        ]
        if report.retention is not None and report.retention.changed:
            lines.append(
                f"[bold]Pruned:[/bold]      {len(report.retention.removed_commits)} commit(s)"
            )
        if report.published:
            lines.append(f"[bold]Published:[/bold]   {report.published} redirect page(s)")
        if report.integrity_problems:
            lines.append(
                f"[yellow][bold]Integrity:[/bold] {len(report.integrity_problems)} problem(s)[/yellow]"
            )

        if report.ok:
            title, style = "[bold green]Database built[/bold green]", "green"
        else:
            lines += ["", f"[bold red]{report.kind.value if report.kind else 'failure'}:[/bold red] {report.message}"]
            title, style = "[bold red]Batch aborted[/bold red]", "red"

        return Panel("\n".join(lines), title=title, border_style=style, padding=(1, 2))

    def print_report(self, report: BatchReport) -> None:
        self.console.print(self.report_panel(report))
