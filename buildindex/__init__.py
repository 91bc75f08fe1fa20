"""buildindex: incremental CI build database for a source branch.

Each batch fetches a bounded window of recent commits, check suites and
workflow runs, merges them into the stored snapshot, prunes it to a
bounded size without losing any "latest available build" link, and
recomputes that latest-build index.
"""

__version__ = "0.1.0"
__description__ = "Incremental CI build database with latest-artifact resolution"

from buildindex.core.orchestrator import BatchReport, BuildIndexer
from buildindex.models.snapshot import LatestArtifactRef, Snapshot
from buildindex.cli.app import app as cli

__all__ = ["BatchReport", "BuildIndexer", "LatestArtifactRef", "Snapshot", "cli", "__version__"]
