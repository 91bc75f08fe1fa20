"""The Snapshot aggregate and the derived latest-artifact index."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from buildindex.models.records import CheckSuite, Commit, WorkflowRun


class LatestArtifactRef(BaseModel):
    """Where the most recent available build of one artifact name lives.

    Derived by ``compute_latest`` and never stored independently of the
    commits, checks and runs it points into.
    """

    model_config = ConfigDict(frozen=True)

    commit_hash: str
    check_id: int
    workflow_name: str
    artifact_id: int
    artifact_name: str
    artifact_size: int = 0


class Snapshot(BaseModel):
    """Everything known about one branch of one repository.

    ``commits`` is ordered newest-first with unique hashes.  ``checks`` and
    ``runs`` are keyed by their remote database IDs.  ``latest`` is
    rewritten only by ``refresh_latest``.
    """

    model_config = ConfigDict(validate_assignment=True)

    generated_at: int = 0  # epoch millis
    commits: list[Commit] = []
    checks: dict[int, CheckSuite] = {}
    runs: dict[int, WorkflowRun] = {}
    latest: dict[str, LatestArtifactRef] = {}

    def get_commit(self, commit_hash: str) -> Commit | None:
        """Return the stored commit with *commit_hash*, or None."""
        for commit in self.commits:
            if commit.hash == commit_hash:
                return commit
        return None

    def owning_check(self, run_id: int) -> CheckSuite | None:
        """Return the check suite whose ``workflow`` is *run_id*, or None."""
        for check in self.checks.values():
            if check.workflow == run_id:
                return check
        return None

    @property
    def artifact_count(self) -> int:
        return sum(len(run.artifacts) for run in self.runs.values())
