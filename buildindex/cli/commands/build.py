"""``buildindex build OWNER REPO BRANCH`` — run one incremental update.

Loads the stored snapshot, merges the newest commits and artifacts from
GitHub, prunes, recomputes the latest index and saves.  With --publish,
also regenerates the redirect pages.
"""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console

from buildindex.cli.commands._options import BRANCH, OWNER, REPO, data_dir_option, resolve_config
from buildindex.cli.render import SnapshotRenderer
from buildindex.core.orchestrator import BuildIndexer
from buildindex.publish.redirects import RedirectPublisher
from buildindex.source.github import GitHubSource
from buildindex.store.snapshot_store import SnapshotStore

console = Console()


def build_cmd(
    owner: str = OWNER,
    repo: str = REPO,
    branch: str = BRANCH,
    keep: int = typer.Option(
        None,
        "--keep",
        "-k",
        min=0,
        help="Minimum number of newest commits to retain (default: 20).",
    ),
    data_dir: Path = data_dir_option(),
    publish: bool = typer.Option(
        False,
        "--publish/--no-publish",
        help="Regenerate redirect pages after a successful build.",
    ),
    publish_dir: Path = typer.Option(
        None,
        "--publish-dir",
        help="Root of the published site (default: out).",
    ),
    log_responses: bool = typer.Option(
        False,
        "--log-responses",
        help="Write raw API payloads under the logs directory.",
    ),
) -> None:
    """Fetch the newest CI data for a branch and update its database."""
    config = resolve_config(
        data_dir=data_dir,
        publish_dir=publish_dir,
        retention_keep=keep,
        log_responses=log_responses or None,
    )

    indexer = BuildIndexer(
        GitHubSource(owner, repo, config=config),
        SnapshotStore(config.data_dir),
        config,
        publisher=RedirectPublisher(config.publish_dir) if publish else None,
    )
    report = indexer.run(owner, repo, branch)

    SnapshotRenderer(console=console).print_report(report)
    if not report.ok:
        raise typer.Exit(code=report.exit_code)
