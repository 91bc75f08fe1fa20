"""GitHub remote data source.

Commit history and check suites come from one GraphQL query per batch;
artifact listings come from the REST ``actions/runs/{id}/artifacts``
endpoint, one request per run.

Every non-200 response and connection error is retried with exponential
backoff (honoring ``Retry-After``).  When retries run out the call raises
``RequestFailure``; a response with an unexpected shape raises
``ParseFailure``.
"""

from __future__ import annotations

import json
import logging
import re
import time
from collections.abc import Callable
from pathlib import Path
from typing import Any

import requests
from pydantic import BaseModel, ConfigDict, Field

from buildindex.config import IndexerConfig
from buildindex.core.errors import ParseFailure, RequestFailure
from buildindex.models.raw import unwrap_connection

logger = logging.getLogger(__name__)

_MAX_BACKOFF_SECONDS = 60.0

RATE_LIMIT_QUERY = """
query {
  rateLimit {
    limit
    cost
    nodeCount
    remaining
    resetAt
  }
}
"""

COMMITS_QUERY = """
query ($owner: String!, $name: String!, $expression: String!, $depth: Int!, $suites: Int!) {
  rateLimit {
    limit
    cost
    nodeCount
    remaining
    resetAt
  }

  repository(owner: $owner, name: $name) {
    object(expression: $expression) {
      ... on Commit {
        history(first: $depth) {
          edges {
            node {
              ...CommitData
            }
          }
        }
      }
    }
  }
}

fragment CommitData on Commit {
  oid
  committedDate
  messageHeadline

  checkSuites(first: $suites) {
    edges {
      node {
        ...CheckSuiteData
      }
    }
  }
}

fragment CheckSuiteData on CheckSuite {
  databaseId
  url
  status
  conclusion
  createdAt
  updatedAt
  workflowRun {
    databaseId
    workflow {
      databaseId
      name
    }
  }
}
"""


class RateLimit(BaseModel):
    """GraphQL API budget as reported by ``rateLimit``."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    limit: int = 0
    cost: int = 0
    node_count: int = Field(default=0, alias="nodeCount")
    remaining: int = 0
    reset_at: str = Field(default="", alias="resetAt")


class GitHubSource:
    """Fetches raw commit, check suite and artifact data for one repository.

    Parameters
    ----------
    owner, repo:
        The repository, e.g. ``godotengine`` / ``godot``.
    config:
        Indexer configuration (endpoints, retries, token, response logging).
    session:
        A ``requests.Session`` to use.  A new one is created if not provided.
    sleep:
        Delay function, replaceable in tests.
    """

    def __init__(
        self,
        owner: str,
        repo: str,
        *,
        config: IndexerConfig | None = None,
        session: requests.Session | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.owner = owner
        self.repo = repo
        self._config = config or IndexerConfig()
        self._sleep = sleep
        self._session = session or requests.Session()
        self._session.headers.update({"Content-Type": "application/json"})
        if self._config.github_token:
            self._session.headers["Authorization"] = f"token {self._config.github_token}"

    @property
    def repository(self) -> str:
        return f"{self.owner}/{self.repo}"

    @property
    def rest_base(self) -> str:
        return f"{self._config.rest_url.rstrip('/')}/repos/{self.owner}/{self.repo}"

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    def _backoff(self, attempt: int, response: requests.Response | None) -> float:
        if response is not None:
            retry_after = response.headers.get("Retry-After")
            if retry_after:
                logger.info("Retry after: %s", retry_after)
                try:
                    return min(float(retry_after), _MAX_BACKOFF_SECONDS)
                except ValueError:
                    pass
        return min(self._config.api_delay_seconds * (2 ** attempt), _MAX_BACKOFF_SECONDS)

    def _request(
        self, method: str, url: str, *, payload: dict[str, Any] | None = None
    ) -> requests.Response:
        """Send a request, retrying until it returns 200 or retries run out."""
        retries = self._config.max_retries
        last_error = ""

        for attempt in range(retries + 1):
            response: requests.Response | None = None
            try:
                response = self._session.request(
                    method,
                    url,
                    json=payload,
                    timeout=self._config.request_timeout_seconds,
                )
            except requests.RequestException as exc:
                last_error = f"{type(exc).__name__}: {exc}"
                logger.warning("Request to %s failed: %s", url, last_error)
            else:
                if response.status_code == 200:
                    return response
                last_error = f"server responded with {response.status_code} {response.reason}"
                logger.warning("Failed to get data from %s; %s", url, last_error)

            if attempt < retries:
                wait = self._backoff(attempt, response)
                logger.info("Retrying (%d/%d) in %.1fs...", attempt + 1, retries, wait)
                self._sleep(wait)

        raise RequestFailure(f"{method} {url} failed after {retries} retries: {last_error}")

    def _decode(self, response: requests.Response, what: str) -> dict[str, Any]:
        try:
            data = response.json()
        except ValueError as exc:
            raise ParseFailure(f"{what}: response is not valid JSON ({exc})") from exc
        if not isinstance(data, dict):
            raise ParseFailure(f"{what}: expected a JSON object, got {type(data).__name__}")
        return data

    def _graphql(self, query: str, variables: dict[str, Any] | None = None) -> dict[str, Any]:
        response = self._request(
            "POST",
            self._config.graphql_url,
            payload={"query": query, "variables": variables or {}},
        )
        payload = self._decode(response, "GraphQL")

        for error in payload.get("errors") or []:
            logger.warning(
                "Server handled the request, but reported [%s] %s",
                error.get("type", "ERROR"),
                error.get("message", ""),
            )

        data = payload.get("data")
        if not isinstance(data, dict):
            raise RequestFailure(f"GraphQL query for {self.repository} returned no data")
        return data

    def _log_response(self, data: Any, name: str) -> None:
        """Write a raw payload under ``logs_dir`` when response logging is on."""
        if not self._config.log_responses:
            return
        safe_name = re.sub(r"[^A-Za-z0-9._-]+", "_", name)
        path = Path(self._config.logs_dir) / f"{safe_name}.json"
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(json.dumps(data, indent=4), encoding="utf-8")
        except OSError as exc:
            logger.error("Error saving log file %s: %s", path, exc)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def check_rates(self) -> RateLimit:
        """Query and log the remaining GraphQL budget."""
        data = self._graphql(RATE_LIMIT_QUERY)
        self._log_response(data, "_rate_limit")
        rate_limit = RateLimit.model_validate(data.get("rateLimit") or {})
        logger.info(
            "[$%d][%d] Available API calls: %d/%d; resets at %s",
            rate_limit.cost,
            rate_limit.node_count,
            rate_limit.remaining,
            rate_limit.limit,
            rate_limit.reset_at,
        )
        return rate_limit

    def fetch_commits(self, branch: str) -> list[dict[str, Any]]:
        """Return the newest commits of *branch*, newest-first, as raw nodes."""
        logger.info("Requesting workflow runs data for commits in %r.", branch)
        data = self._graphql(
            COMMITS_QUERY,
            {
                "owner": self.owner,
                "name": self.repo,
                "expression": branch,
                "depth": self._config.history_depth,
                "suites": self._config.check_suites_per_commit,
            },
        )
        self._log_response(data, f"data_runs_{branch}")

        repository = data.get("repository")
        if not isinstance(repository, dict):
            raise ParseFailure(f"Repository {self.repository} not found in response")
        target = repository.get("object")
        if not isinstance(target, dict) or "history" not in target:
            raise ParseFailure(f"Branch {branch!r} of {self.repository} has no commit history")
        try:
            nodes = unwrap_connection(target["history"])
        except ValueError as exc:
            raise ParseFailure(f"Malformed commit history for {branch!r}: {exc}") from exc
        if not isinstance(nodes, list):
            raise ParseFailure(f"Malformed commit history for {branch!r}")

        rate_limit = RateLimit.model_validate(data.get("rateLimit") or {})
        logger.info(
            "[$%d][%d] Retrieved %d commits and their runs.",
            rate_limit.cost,
            rate_limit.node_count,
            len(nodes),
        )
        return nodes

    def fetch_artifacts(self, run_id: int) -> list[dict[str, Any]]:
        """Return the raw artifact list of workflow run *run_id*."""
        response = self._request("GET", f"{self.rest_base}/actions/runs/{run_id}/artifacts")
        data = self._decode(response, f"artifacts of run {run_id}")
        self._log_response(data, f"data_artifacts_{run_id}")

        artifacts = data.get("artifacts")
        if not isinstance(artifacts, list):
            raise ParseFailure(f"Artifact listing for run {run_id} has no 'artifacts' array")

        logger.info("[$0] Retrieved %d artifacts for %d.", len(artifacts), run_id)
        return artifacts
