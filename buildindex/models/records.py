"""Snapshot records — commits, check suites, workflow runs, artifacts.

Field order mirrors the persisted JSON layout so that a stored snapshot
round-trips byte-for-byte through ``model_dump_json()``.

Commits, check suites and runs are mutable: the reconciler updates them
in place during a batch.  Artifacts never change once recorded.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class Artifact(BaseModel):
    """A named build output attached to a workflow run."""

    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    size: int = 0
    created_at: str | None = None
    updated_at: str | None = None
    expires_at: str | None = None


class WorkflowRun(BaseModel):
    """One execution of a build workflow.

    ``name`` and ``workflow_id`` are fixed at first sight.  Artifacts are
    appended as they are discovered and never removed individually.
    """

    model_config = ConfigDict(validate_assignment=True)

    name: str
    workflow_id: int
    run_id: int
    artifacts: list[Artifact] = []

    def has_artifact(self, artifact_id: int) -> bool:
        return any(a.id == artifact_id for a in self.artifacts)


class CheckSuite(BaseModel):
    """A CI check suite attached to a commit.

    ``status``, ``conclusion`` and ``updated_at`` follow the remote on every
    fetch.  ``workflow`` stays ``None`` until a run is observed, and is
    never changed afterwards.
    """

    model_config = ConfigDict(validate_assignment=True)

    check_id: int
    check_url: str = ""
    status: str = ""
    conclusion: str | None = None
    created_at: str | None = None
    updated_at: str | None = None
    workflow: int | None = None

    @property
    def is_completed(self) -> bool:
        return self.status.upper() == "COMPLETED"


class Commit(BaseModel):
    """A revision of the tracked branch and the check suites run against it."""

    model_config = ConfigDict(validate_assignment=True)

    hash: str
    title: str = ""
    committed_date: str = ""
    checks: list[int] = []

    def link_check(self, check_id: int) -> bool:
        """Add *check_id* unless already linked.  Returns True if added."""
        if check_id in self.checks:
            return False
        self.checks.append(check_id)
        return True
