"""Retention policy — bounds the snapshot without breaking latest links.

Artifacts expire at unpredictable times, so the newest commit that still
has a usable build of some artifact can sit well past the newest ``keep``
commits.  The policy keeps the newest ``keep`` commits plus every commit
the current latest index points at, and drops the rest.

Dropping a commit drops its check suites, and the workflow runs (with
their artifacts) owned by those suites.  Suites and runs are never
dropped on their own.
"""

from __future__ import annotations

import logging

from pydantic import BaseModel, ConfigDict

from buildindex.config import DEFAULT_RETENTION_KEEP
from buildindex.core.latest import latest_commit_hashes
from buildindex.models.records import Commit
from buildindex.models.snapshot import Snapshot

logger = logging.getLogger(__name__)


class RetentionReport(BaseModel):
    """What a ``reduce`` pass removed."""

    model_config = ConfigDict(frozen=True)

    keep: int
    kept_commits: int = 0
    removed_commits: list[str] = []
    removed_checks: list[int] = []
    removed_runs: list[int] = []

    @property
    def changed(self) -> bool:
        return bool(self.removed_commits)


def reduce(snapshot: Snapshot, keep: int = DEFAULT_RETENTION_KEEP) -> RetentionReport:
    """Prune *snapshot* in place to the newest *keep* commits plus pinned ones.

    A commit is pinned when the latest index computed before pruning
    references it.  The walk goes newest-first and cannot stop at *keep*
    while pinned commits remain unvisited; unpinned commits past *keep*
    are deleted along the way.
    """
    if keep < 0:
        raise ValueError(f"keep must be >= 0, got {keep}")

    pinned = latest_commit_hashes(snapshot)
    kept: list[Commit] = []
    dropped: list[Commit] = []

    for index, commit in enumerate(snapshot.commits):
        if commit.hash in pinned:
            pinned.discard(commit.hash)
            kept.append(commit)
        elif index < keep:
            kept.append(commit)
        else:
            dropped.append(commit)

    if not dropped:
        return RetentionReport(keep=keep, kept_commits=len(kept))

    snapshot.commits = kept

    surviving_checks = {check_id for commit in kept for check_id in commit.checks}
    surviving_runs = {
        snapshot.checks[check_id].workflow
        for check_id in surviving_checks
        if check_id in snapshot.checks and snapshot.checks[check_id].workflow is not None
    }

    removed_checks: list[int] = []
    removed_runs: list[int] = []
    for commit in dropped:
        for check_id in commit.checks:
            if check_id in surviving_checks:
                continue
            check = snapshot.checks.pop(check_id, None)
            if check is None:
                continue
            removed_checks.append(check_id)

            run_id = check.workflow
            if run_id is None or run_id in surviving_runs:
                continue
            if snapshot.runs.pop(run_id, None) is not None:
                removed_runs.append(run_id)

    logger.info(
        "Retention (keep=%d): kept %d commit(s), removed %d commit(s), "
        "%d check suite(s), %d run(s)",
        keep,
        len(kept),
        len(dropped),
        len(removed_checks),
        len(removed_runs),
    )

    return RetentionReport(
        keep=keep,
        kept_commits=len(kept),
        removed_commits=[commit.hash for commit in dropped],
        removed_checks=removed_checks,
        removed_runs=removed_runs,
    )
