"""Read-only queries over a snapshot."""

from __future__ import annotations

from collections.abc import Collection

from buildindex.models.snapshot import Snapshot


def get_incomplete_runs(
    snapshot: Snapshot,
    *,
    completed_only: bool = False,
    window: Collection[str] | None = None,
) -> list[int]:
    """Return IDs of runs whose artifact list is still empty.

    There is no terminal state: a run that will never upload artifacts
    stays incomplete until retention removes its commit.

    With *completed_only*, runs whose check suite has not reached
    ``COMPLETED`` are left out, since their artifact list may still grow.
    *window* limits that filter to checks whose status is current: only
    commits with a hash in *window* were re-fetched this batch, so a check
    on any other commit keeps a stale status and its run is returned.
    """
    fresh: set[int] | None = None
    if completed_only and window is not None:
        hashes = set(window)
        fresh = {
            check_id
            for commit in snapshot.commits
            if commit.hash in hashes
            for check_id in commit.checks
        }

    incomplete: list[int] = []
    for run_id, run in snapshot.runs.items():
        if run.artifacts:
            continue
        if completed_only:
            check = snapshot.owning_check(run_id)
            if (
                check is not None
                and not check.is_completed
                and (fresh is None or check.check_id in fresh)
            ):
                continue
        incomplete.append(run_id)
    return incomplete


def check_integrity(snapshot: Snapshot) -> list[str]:
    """Describe every structural invariant the snapshot violates.

    Returns an empty list for a healthy snapshot.  Commit order is history
    order, not date order, so ``committed_date`` is not checked.
    """
    problems: list[str] = []

    seen: set[str] = set()
    for commit in snapshot.commits:
        if commit.hash in seen:
            problems.append(f"Duplicate commit {commit.hash}")
        seen.add(commit.hash)

    for commit in snapshot.commits:
        for check_id in commit.checks:
            if check_id not in snapshot.checks:
                problems.append(f"Commit {commit.hash} references missing check suite {check_id}")

    for check in snapshot.checks.values():
        if check.workflow is not None and check.workflow not in snapshot.runs:
            problems.append(
                f"Check suite {check.check_id} references missing workflow run {check.workflow}"
            )

    return problems
