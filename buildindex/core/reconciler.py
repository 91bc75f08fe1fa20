"""Data reconciler — merges freshly fetched remote data into a snapshot.

Merge rules
-----------
- Commits are matched by hash.  New commits go to the head of the list;
  known commits are never moved or duplicated.
- Check suites are matched by ``check_id``.  Known suites only take the
  remote ``status``, ``conclusion`` and ``updated_at``.
- A suite's ``workflow`` link is set the first time a run is observed and
  is permanent afterwards.  The run record is created at that moment.
- Artifacts are appended to their run, skipping IDs already recorded.

Failures are partial: a malformed entry stops the merge, and everything
applied before it stays applied.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from pydantic import ValidationError

from buildindex.models.raw import RawArtifact, RawCheckSuite, RawCommit
from buildindex.models.records import Artifact, CheckSuite, Commit, WorkflowRun
from buildindex.models.results import FailureKind, OperationResult
from buildindex.models.snapshot import Snapshot

logger = logging.getLogger(__name__)


def _describe(exc: ValidationError) -> str:
    first = exc.errors()[0]
    location = ".".join(str(part) for part in first.get("loc", ()))
    return f"{exc.error_count()} error(s); first at '{location}': {first.get('msg', '')}"


# ---------------------------------------------------------------------------
# Commits and check suites
# ---------------------------------------------------------------------------


def merge_commits(
    snapshot: Snapshot,
    raw_commits: Sequence[Mapping[str, Any] | RawCommit],
) -> OperationResult:
    """Merge a newest-first batch of raw commits into *snapshot*.

    The batch is applied oldest-to-newest so that inserting each new
    commit at the head leaves the newest one first.

    Returns an ``OperationResult`` whose ``applied`` is the number of raw
    commits merged.  A malformed commit yields a PARSE failure; commits
    merged before it are kept.
    """
    applied = 0

    for position, raw in enumerate(reversed(raw_commits)):
        try:
            item = raw if isinstance(raw, RawCommit) else RawCommit.model_validate(raw)
        except ValidationError as exc:
            index = len(raw_commits) - 1 - position
            message = f"Malformed commit payload at index {index}: {_describe(exc)}"
            logger.error("%s (%d commit(s) merged before it)", message, applied)
            return OperationResult.failure(FailureKind.PARSE, message, applied=applied)

        _upsert_commit(snapshot, item)
        applied += 1

    logger.debug("Merged %d commit(s); snapshot holds %d", applied, len(snapshot.commits))
    return OperationResult.success(applied)


def batch_hashes(raw_commits: Iterable[Mapping[str, Any] | RawCommit]) -> set[str]:
    """Hashes of the commits in a raw batch; entries without one are ignored."""
    hashes: set[str] = set()
    for raw in raw_commits:
        oid = raw.oid if isinstance(raw, RawCommit) else raw.get("oid")
        if isinstance(oid, str) and oid:
            hashes.add(oid)
    return hashes


def _upsert_commit(snapshot: Snapshot, item: RawCommit) -> Commit:
    commit = snapshot.get_commit(item.oid)
    if commit is None:
        commit = Commit(
            hash=item.oid,
            title=item.message_headline,
            committed_date=item.committed_date,
        )
        snapshot.commits.insert(0, commit)
        logger.debug("New commit %s", item.oid[:10])

    for suite in item.check_suites:
        _upsert_check(snapshot, commit, suite)
    return commit


def _upsert_check(snapshot: Snapshot, commit: Commit, suite: RawCheckSuite) -> CheckSuite:
    check = snapshot.checks.get(suite.database_id)
    if check is None:
        check = CheckSuite(
            check_id=suite.database_id,
            check_url=suite.url,
            status=suite.status,
            conclusion=suite.conclusion,
            created_at=suite.created_at,
            updated_at=suite.updated_at,
        )
        snapshot.checks[check.check_id] = check
    else:
        check.status = suite.status
        check.conclusion = suite.conclusion
        check.updated_at = suite.updated_at

    commit.link_check(check.check_id)

    if suite.workflow_run is not None and check.workflow is None:
        run_id = suite.workflow_run.database_id
        if run_id not in snapshot.runs:
            snapshot.runs[run_id] = WorkflowRun(
                name=suite.workflow_run.workflow.name,
                workflow_id=suite.workflow_run.workflow.database_id,
                run_id=run_id,
            )
            logger.debug("New workflow run %d (%s)", run_id, suite.workflow_run.workflow.name)
        check.workflow = run_id

    return check


# ---------------------------------------------------------------------------
# Artifacts
# ---------------------------------------------------------------------------


def merge_artifacts(
    snapshot: Snapshot,
    run_id: int,
    raw_artifacts: Iterable[Mapping[str, Any] | RawArtifact],
) -> OperationResult:
    """Append raw artifacts to the run *run_id*.

    Artifacts whose ``id`` is already recorded on the run are skipped, so
    re-merging the same listing is harmless.  ``applied`` counts the
    artifacts actually added.
    """
    run = snapshot.runs.get(run_id)
    if run is None:
        message = f"Cannot merge artifacts into unknown workflow run {run_id}"
        logger.error(message)
        return OperationResult.failure(FailureKind.PARSE, message)

    applied = 0
    for index, raw in enumerate(raw_artifacts):
        try:
            item = raw if isinstance(raw, RawArtifact) else RawArtifact.model_validate(raw)
        except ValidationError as exc:
            message = (
                f"Malformed artifact payload for run {run_id} at index {index}: "
                f"{_describe(exc)}"
            )
            logger.error(message)
            return OperationResult.failure(FailureKind.PARSE, message, applied=applied)

        if run.has_artifact(item.id):
            continue

        run.artifacts.append(
            Artifact(
                id=item.id,
                name=item.name,
                size=item.size_in_bytes,
                created_at=item.created_at,
                updated_at=item.updated_at,
                expires_at=item.expires_at,
            )
        )
        applied += 1

    logger.debug("Run %d: %d new artifact(s)", run_id, applied)
    return OperationResult.success(applied)
