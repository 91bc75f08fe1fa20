"""Batch orchestrator — one incremental update of one branch.

The BuildIndexer wires the remote source, the snapshot store, the core
transforms and the optional redirect publisher into a single batch:

1. Load the stored snapshot (or start empty)
2. Fetch the newest commits and merge them
3. Fetch and merge artifacts for runs that have none yet
4. Apply retention
5. Recompute the latest index
6. Save once, then publish redirects

Nothing is written before step 6, so an aborted batch leaves the
previously saved snapshot untouched.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict

from buildindex.config import IndexerConfig
from buildindex.core.errors import BuildIndexError
from buildindex.core.latest import refresh_latest
from buildindex.core.queries import check_integrity, get_incomplete_runs
from buildindex.core.reconciler import batch_hashes, merge_artifacts, merge_commits
from buildindex.core.retention import RetentionReport, reduce
from buildindex.models.results import FailureKind
from buildindex.models.snapshot import Snapshot
from buildindex.publish.redirects import RedirectPublisher
from buildindex.source import RemoteSource
from buildindex.store.snapshot_store import SnapshotStore

logger = logging.getLogger(__name__)


def _epoch_millis() -> int:
    return int(datetime.now(timezone.utc).timestamp() * 1000)


class BatchReport(BaseModel):
    """Outcome of one ``BuildIndexer.run`` call."""

    model_config = ConfigDict(frozen=True)

    owner: str
    repo: str
    branch: str
    ok: bool = True
    kind: FailureKind | None = None
    message: str = ""
    commits_merged: int = 0
    runs_polled: int = 0
    artifacts_merged: int = 0
    artifact_parse_failures: int = 0
    retention: RetentionReport | None = None
    commit_count: int = 0
    artifact_count: int = 0
    latest_count: int = 0
    integrity_problems: list[str] = []
    saved: bool = False
    published: int = 0

    @property
    def exit_code(self) -> int:
        return self.kind.exit_code if self.kind is not None else 0


class BuildIndexer:
    """Runs incremental update batches for one repository.

    Parameters
    ----------
    source:
        Remote data source (``GitHubSource`` in production).
    store:
        Snapshot store.
    config:
        Indexer configuration.  Uses defaults if not provided.
    publisher:
        Optional redirect publisher, run after a successful save.
    sleep, clock:
        Delay function and epoch-millis clock, replaceable in tests.
    """

    def __init__(
        self,
        source: RemoteSource,
        store: SnapshotStore,
        config: IndexerConfig | None = None,
        *,
        publisher: RedirectPublisher | None = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], int] = _epoch_millis,
    ) -> None:
        self.source = source
        self.store = store
        self.config = config or IndexerConfig()
        self.publisher = publisher
        self._sleep = sleep
        self._clock = clock
        self.snapshot: Snapshot | None = None

    # ------------------------------------------------------------------
    # Batch
    # ------------------------------------------------------------------

    def run(
        self, owner: str, repo: str, branch: str, *, keep: int | None = None
    ) -> BatchReport:
        """Run one batch for *branch* and return its report.

        Failures are reported, not raised: the report's ``kind`` decides
        the exit code.  The snapshot is saved only when every step before
        the save succeeded.
        """
        keep = self.config.retention_keep if keep is None else keep
        counts: dict = {"owner": owner, "repo": repo, "branch": branch}
        logger.info("Building workflow run database for %s/%s, branch %s.", owner, repo, branch)

        snapshot, load_result = self.store.load(owner, repo, branch)
        if not load_result.ok:
            logger.warning("Continuing with an empty database: %s", load_result.message)
        self.snapshot = snapshot

        try:
            self._check_rates("before")

            raw_commits = self.source.fetch_commits(branch)
            merged = merge_commits(snapshot, raw_commits)
            counts["commits_merged"] = merged.applied
            if not merged.ok:
                return self._abort(counts, merged.kind or FailureKind.PARSE, merged.message)

            self._merge_artifacts(snapshot, counts, batch_hashes(raw_commits))

            self._check_rates("after")
        except BuildIndexError as exc:
            return self._abort(counts, exc.kind, str(exc))

        try:
            retention = reduce(snapshot, keep)
            refresh_latest(snapshot)
            snapshot.generated_at = self._clock()
        except Exception as exc:
            logger.exception("Unexpected error while processing %s/%s", owner, repo)
            return self._abort(counts, FailureKind.EXEC, f"{type(exc).__name__}: {exc}")

        problems = check_integrity(snapshot)
        for problem in problems:
            logger.warning("Integrity: %s", problem)

        try:
            self.store.save(snapshot, owner, repo, branch)
            counts["saved"] = True
            if self.publisher is not None:
                counts["published"] = len(self.publisher.publish(snapshot, owner, repo, branch))
        except BuildIndexError as exc:
            return self._abort(counts, exc.kind, str(exc))

        logger.info(
            "Database built: %d commit(s), %d latest artifact(s).",
            len(snapshot.commits),
            len(snapshot.latest),
        )
        return BatchReport(
            **counts,
            retention=retention,
            commit_count=len(snapshot.commits),
            artifact_count=snapshot.artifact_count,
            latest_count=len(snapshot.latest),
            integrity_problems=problems,
        )

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    def _merge_artifacts(self, snapshot: Snapshot, counts: dict, window: set[str]) -> None:
        # Checks outside the fetch window keep a stale status; their runs are polled.
        run_ids = get_incomplete_runs(
            snapshot, completed_only=self.config.wait_for_completed_runs, window=window
        )
        logger.info("Fetching artifact data for %d run(s).", len(run_ids))

        counts["runs_polled"] = 0
        counts["artifacts_merged"] = 0
        counts["artifact_parse_failures"] = 0
        for index, run_id in enumerate(run_ids):
            if index:
                # Secondary rate limit: space out consecutive REST calls.
                self._sleep(self.config.api_delay_seconds)

            raw_artifacts = self.source.fetch_artifacts(run_id)
            counts["runs_polled"] += 1

            result = merge_artifacts(snapshot, run_id, raw_artifacts)
            counts["artifacts_merged"] += result.applied
            if not result.ok:
                counts["artifact_parse_failures"] += 1
                logger.warning("Run %d: %s", run_id, result.message)

    def _check_rates(self, when: str) -> None:
        logger.debug("Checking the rate limits %s.", when)
        self.source.check_rates()

    def _abort(self, counts: dict, kind: FailureKind, message: str) -> BatchReport:
        logger.error("Terminating with %s (exit code %d): %s", kind.value, kind.exit_code, message)
        return BatchReport(**counts, ok=False, kind=kind, message=message)
