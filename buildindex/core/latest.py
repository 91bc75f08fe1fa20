"""Latest resolver — newest available build per artifact name.

A pure function of the snapshot.  Commits are walked newest-first, so the
first time an artifact name is seen is also the most recent build of it.
"""

from __future__ import annotations

from buildindex.models.snapshot import LatestArtifactRef, Snapshot


def compute_latest(snapshot: Snapshot) -> dict[str, LatestArtifactRef]:
    """Map every artifact name to its most recent commit/check/run/artifact.

    Checks without a resolved workflow, and runs without artifacts, are
    skipped.  A ``workflow`` pointing at a run that is not in the snapshot
    is skipped as well.
    """
    latest: dict[str, LatestArtifactRef] = {}

    for commit in snapshot.commits:
        for check_id in commit.checks:
            check = snapshot.checks.get(check_id)
            if check is None or check.workflow is None:
                continue
            run = snapshot.runs.get(check.workflow)
            if run is None:
                continue

            for artifact in run.artifacts:
                if artifact.name in latest:
                    continue
                latest[artifact.name] = LatestArtifactRef(
                    commit_hash=commit.hash,
                    check_id=check.check_id,
                    workflow_name=run.name,
                    artifact_id=artifact.id,
                    artifact_name=artifact.name,
                    artifact_size=artifact.size,
                )

    return latest


def refresh_latest(snapshot: Snapshot) -> dict[str, LatestArtifactRef]:
    """Recompute ``snapshot.latest`` in place and return it."""
    snapshot.latest = compute_latest(snapshot)
    return snapshot.latest


def latest_commit_hashes(snapshot: Snapshot) -> set[str]:
    """Hashes of every commit the current latest index depends on."""
    return {ref.commit_hash for ref in compute_latest(snapshot).values()}
