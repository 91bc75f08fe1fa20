"""Core transforms over the in-memory snapshot, plus the batch orchestrator."""

from buildindex.core.latest import compute_latest, refresh_latest
from buildindex.core.queries import check_integrity, get_incomplete_runs
from buildindex.core.reconciler import batch_hashes, merge_artifacts, merge_commits
from buildindex.core.retention import RetentionReport, reduce

__all__ = [
    "RetentionReport",
    "batch_hashes",
    "check_integrity",
    "compute_latest",
    "get_incomplete_runs",
    "merge_artifacts",
    "merge_commits",
    "reduce",
    "refresh_latest",
]
