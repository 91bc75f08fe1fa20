"""Remote data sources.

A source supplies raw, newest-first commit nodes for a branch and raw
artifact listings for a workflow run.  ``RemoteSource`` is the structural
type the orchestrator depends on; ``GitHubSource`` is the implementation.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from buildindex.source.github import GitHubSource, RateLimit


@runtime_checkable
class RemoteSource(Protocol):
    """Protocol every remote data source must implement."""

    def check_rates(self) -> Any:
        """Report the remaining request budget (informational)."""
        ...

    def fetch_commits(self, branch: str) -> list[dict[str, Any]]:
        """Return raw commit nodes for *branch*, newest-first."""
        ...

    def fetch_artifacts(self, run_id: int) -> list[dict[str, Any]]:
        """Return the raw artifact listing for workflow run *run_id*."""
        ...


__all__ = ["GitHubSource", "RateLimit", "RemoteSource"]
