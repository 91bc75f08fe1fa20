"""Shared test fixtures for buildindex."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from buildindex.config import IndexerConfig
from buildindex.core.errors import RequestFailure
from buildindex.models.snapshot import Snapshot
from buildindex.store.snapshot_store import SnapshotStore


@pytest.fixture
def snapshot() -> Snapshot:
    """Provide an empty snapshot."""
    return Snapshot()


@pytest.fixture
def store(tmp_path: Path) -> SnapshotStore:
    """Provide a SnapshotStore in a temp directory."""
    return SnapshotStore(tmp_path / "data")


@pytest.fixture
def test_config(tmp_path: Path) -> IndexerConfig:
    """Provide a config with temp paths and no delays."""
    return IndexerConfig(
        data_dir=tmp_path / "data",
        logs_dir=tmp_path / "logs",
        publish_dir=tmp_path / "out",
        api_delay_seconds=0,
        max_retries=2,
        github_token="",
    )


# ---------------------------------------------------------------------------
# Raw payload factories (GitHub-shaped dicts)
# ---------------------------------------------------------------------------


@pytest.fixture
def make_raw_check_suite() -> Callable[..., dict[str, Any]]:
    """Factory fixture: build a GraphQL check suite node."""

    def _factory(
        check_id: int = 100,
        status: str = "COMPLETED",
        conclusion: str | None = "SUCCESS",
        run_id: int | None = 1000,
        workflow_name: str = "Linux Builds",
        workflow_id: int = 7,
        **overrides: Any,
    ) -> dict[str, Any]:
        node: dict[str, Any] = {
            "databaseId": check_id,
            "url": f"https://api.github.com/check-suites/{check_id}",
            "status": status,
            "conclusion": conclusion,
            "createdAt": "2024-05-01T10:00:00Z",
            "updatedAt": "2024-05-01T10:30:00Z",
            "workflowRun": None,
        }
        if run_id is not None:
            node["workflowRun"] = {
                "databaseId": run_id,
                "workflow": {"databaseId": workflow_id, "name": workflow_name},
            }
        node.update(overrides)
        return node

    return _factory


@pytest.fixture
def make_raw_commit() -> Callable[..., dict[str, Any]]:
    """Factory fixture: build a GraphQL commit node with a suites connection."""

    def _factory(
        oid: str = "a" * 40,
        suites: list[dict[str, Any]] | None = None,
        committed_date: str = "2024-05-01T09:00:00Z",
        headline: str = "Fix the build",
        **overrides: Any,
    ) -> dict[str, Any]:
        node: dict[str, Any] = {
            "oid": oid,
            "committedDate": committed_date,
            "messageHeadline": headline,
            "checkSuites": {"edges": [{"node": s} for s in (suites or [])]},
        }
        node.update(overrides)
        return node

    return _factory


@pytest.fixture
def make_raw_artifact() -> Callable[..., dict[str, Any]]:
    """Factory fixture: build a REST artifact entry."""

    def _factory(
        artifact_id: int = 5000,
        name: str = "linux-editor",
        size: int = 1024,
        **overrides: Any,
    ) -> dict[str, Any]:
        entry: dict[str, Any] = {
            "id": artifact_id,
            "name": name,
            "size_in_bytes": size,
            "created_at": "2024-05-01T10:20:00Z",
            "updated_at": "2024-05-01T10:20:00Z",
            "expires_at": "2024-08-01T10:20:00Z",
        }
        entry.update(overrides)
        return entry

    return _factory


# ---------------------------------------------------------------------------
# Fake remote source
# ---------------------------------------------------------------------------


class FakeSource:
    """In-memory RemoteSource: serves canned commits and artifact listings."""

    def __init__(
        self,
        commits: list[dict[str, Any]] | None = None,
        artifacts: dict[int, list[dict[str, Any]]] | None = None,
    ) -> None:
        self.commits = commits or []
        self.artifacts = artifacts or {}
        self.fail_commits = False
        self.fail_artifacts_for: set[int] = set()
        self.rate_checks = 0
        self.artifact_requests: list[int] = []

    def check_rates(self) -> None:
        self.rate_checks += 1

    def fetch_commits(self, branch: str) -> list[dict[str, Any]]:
        if self.fail_commits:
            raise RequestFailure(f"commits for {branch} unavailable")
        return list(self.commits)

    def fetch_artifacts(self, run_id: int) -> list[dict[str, Any]]:
        self.artifact_requests.append(run_id)
        if run_id in self.fail_artifacts_for:
            raise RequestFailure(f"artifacts for run {run_id} unavailable")
        return list(self.artifacts.get(run_id, []))


@pytest.fixture
def fake_source() -> FakeSource:
    """Provide an empty FakeSource."""
    return FakeSource()
