"""Tests for read-only snapshot queries."""

from __future__ import annotations

from buildindex.core.queries import check_integrity, get_incomplete_runs
from buildindex.models.records import Artifact, CheckSuite, Commit, WorkflowRun
from buildindex.models.snapshot import Snapshot


def _runs_snapshot() -> Snapshot:
    return Snapshot(
        commits=[Commit(hash="c1", checks=[1, 2, 3])],
        checks={
            1: CheckSuite(check_id=1, status="COMPLETED", workflow=10),
            2: CheckSuite(check_id=2, status="IN_PROGRESS", workflow=20),
            3: CheckSuite(check_id=3, status="COMPLETED", workflow=30),
        },
        runs={
            10: WorkflowRun(name="A", workflow_id=1, run_id=10),
            20: WorkflowRun(name="B", workflow_id=2, run_id=20),
            30: WorkflowRun(
                name="C", workflow_id=3, run_id=30, artifacts=[Artifact(id=1, name="x")]
            ),
        },
    )


class TestIncompleteRuns:
    def test_runs_without_artifacts(self):
        assert get_incomplete_runs(_runs_snapshot()) == [10, 20]

    def test_completed_only(self):
        assert get_incomplete_runs(_runs_snapshot(), completed_only=True) == [10]

    def test_stale_status_outside_window_is_polled(self):
        # Commit c1 was not re-fetched, so check 2 may have finished since.
        assert get_incomplete_runs(_runs_snapshot(), completed_only=True, window=["c9"]) == [10, 20]

    def test_fresh_status_inside_window_is_respected(self):
        assert get_incomplete_runs(_runs_snapshot(), completed_only=True, window=["c1"]) == [10]

    def test_window_ignored_without_completed_only(self):
        assert get_incomplete_runs(_runs_snapshot(), window=[]) == [10, 20]

    def test_run_without_owning_check_is_polled(self):
        snapshot = _runs_snapshot()
        del snapshot.checks[2]
        assert get_incomplete_runs(snapshot, completed_only=True) == [10, 20]

    def test_empty_snapshot(self):
        assert get_incomplete_runs(Snapshot()) == []


class TestCheckIntegrity:
    def test_healthy_snapshot(self):
        assert check_integrity(_runs_snapshot()) == []

    def test_duplicate_commit(self):
        snapshot = Snapshot(commits=[Commit(hash="c1"), Commit(hash="c1")])
        problems = check_integrity(snapshot)
        assert any("Duplicate commit c1" in p for p in problems)

    def test_commit_dates_are_not_checked(self):
        # Rebased and merged commits carry committer dates out of history order.
        snapshot = Snapshot(
            commits=[
                Commit(hash="merge", committed_date="2024-01-01T00:00:00Z"),
                Commit(hash="rebased", committed_date="2024-02-01T00:00:00Z"),
            ]
        )
        assert check_integrity(snapshot) == []

    def test_missing_check(self):
        snapshot = Snapshot(commits=[Commit(hash="c1", checks=[9])])
        assert check_integrity(snapshot) == ["Commit c1 references missing check suite 9"]

    def test_missing_run(self):
        snapshot = Snapshot(checks={1: CheckSuite(check_id=1, workflow=99)})
        assert check_integrity(snapshot) == ["Check suite 1 references missing workflow run 99"]
