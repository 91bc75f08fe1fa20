"""buildindex data models — all Pydantic v2."""

from buildindex.models.raw import (
    RawArtifact,
    RawCheckSuite,
    RawCommit,
    RawWorkflow,
    RawWorkflowRun,
    unwrap_connection,
)
from buildindex.models.records import Artifact, CheckSuite, Commit, WorkflowRun
from buildindex.models.results import EXIT_CODES, FailureKind, OperationResult
from buildindex.models.snapshot import LatestArtifactRef, Snapshot

__all__ = [
    # records
    "Artifact",
    "CheckSuite",
    "Commit",
    "WorkflowRun",
    # snapshot
    "LatestArtifactRef",
    "Snapshot",
    # raw payloads
    "RawArtifact",
    "RawCheckSuite",
    "RawCommit",
    "RawWorkflow",
    "RawWorkflowRun",
    "unwrap_connection",
    # results
    "EXIT_CODES",
    "FailureKind",
    "OperationResult",
]
