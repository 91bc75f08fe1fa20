"""Tests for the GitHub source — request shaping, retries, payload checks.

No network: a scripted session hands back prepared ``requests.Response``
objects.
"""

from __future__ import annotations

import json
from typing import Any

import pytest
import requests
from requests.structures import CaseInsensitiveDict

from buildindex.core.errors import ParseFailure, RequestFailure
from buildindex.source import GitHubSource, RateLimit, RemoteSource


def _response(status: int = 200, body: Any = None, *, raw: bytes | None = None, headers=None):
    response = requests.Response()
    response.status_code = status
    response.reason = "OK" if status == 200 else "Error"
    response._content = raw if raw is not None else json.dumps(body).encode("utf-8")
    response.headers = CaseInsensitiveDict(headers or {})
    return response


class _ScriptedSession:
    """Replays queued responses (or exceptions) and records every call."""

    def __init__(self, *replies: Any) -> None:
        self.headers: CaseInsensitiveDict = CaseInsensitiveDict()
        self.replies = list(replies)
        self.calls: list[dict[str, Any]] = []

    def request(self, method, url, json=None, timeout=None):
        self.calls.append({"method": method, "url": url, "json": json, "timeout": timeout})
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


_RATES = {"limit": 5000, "cost": 1, "nodeCount": 10, "remaining": 4999, "resetAt": "2024-05-01T11:00:00Z"}


def _history_payload(nodes: list[dict]) -> dict:
    return {
        "data": {
            "rateLimit": _RATES,
            "repository": {"object": {"history": {"edges": [{"node": n} for n in nodes]}}},
        }
    }


@pytest.fixture
def sleeps() -> list[float]:
    return []


@pytest.fixture
def make_source(test_config, sleeps):
    def _factory(*replies: Any, **config_updates: Any) -> tuple[GitHubSource, _ScriptedSession]:
        session = _ScriptedSession(*replies)
        config = test_config.model_copy(update=config_updates) if config_updates else test_config
        source = GitHubSource("godotengine", "godot", config=config, session=session, sleep=sleeps.append)
        return source, session

    return _factory


class TestSetup:
    def test_satisfies_protocol(self, make_source):
        source, _ = make_source()
        assert isinstance(source, RemoteSource)

    def test_no_token_no_auth_header(self, make_source):
        _, session = make_source()
        assert "Authorization" not in session.headers
        assert session.headers["Content-Type"] == "application/json"

    def test_token_header(self, make_source):
        _, session = make_source(github_token="secret")
        assert session.headers["Authorization"] == "token secret"


class TestFetchCommits:
    def test_returns_nodes_newest_first(self, make_source, make_raw_commit):
        nodes = [make_raw_commit(oid="c2"), make_raw_commit(oid="c1")]
        source, session = make_source(_response(body=_history_payload(nodes)))

        result = source.fetch_commits("master")

        assert [n["oid"] for n in result] == ["c2", "c1"]
        call = session.calls[0]
        assert call["method"] == "POST"
        assert call["url"] == "https://api.github.com/graphql"
        assert call["json"]["variables"] == {
            "owner": "godotengine",
            "name": "godot",
            "expression": "master",
            "depth": 10,
            "suites": 20,
        }

    def test_missing_repository_is_parse_failure(self, make_source):
        source, _ = make_source(_response(body={"data": {"repository": None}}))
        with pytest.raises(ParseFailure):
            source.fetch_commits("master")

    def test_unknown_branch_is_parse_failure(self, make_source):
        source, _ = make_source(_response(body={"data": {"repository": {"object": None}}}))
        with pytest.raises(ParseFailure):
            source.fetch_commits("nope")

    def test_graphql_errors_without_data(self, make_source):
        body = {"errors": [{"type": "NOT_FOUND", "message": "Could not resolve"}]}
        source, _ = make_source(_response(body=body))
        with pytest.raises(RequestFailure):
            source.fetch_commits("master")

    def test_non_json_is_parse_failure(self, make_source):
        source, _ = make_source(_response(raw=b"<html>oops</html>"))
        with pytest.raises(ParseFailure):
            source.fetch_commits("master")

    def test_logs_response_when_enabled(self, make_source, make_raw_commit, test_config):
        source, _ = make_source(
            _response(body=_history_payload([make_raw_commit()])), log_responses=True
        )
        source.fetch_commits("release/4.2")
        dumped = test_config.logs_dir / "data_runs_release_4.2.json"
        assert json.loads(dumped.read_text(encoding="utf-8"))["rateLimit"]["limit"] == 5000


class TestFetchArtifacts:
    def test_returns_artifact_list(self, make_source, make_raw_artifact):
        body = {"total_count": 1, "artifacts": [make_raw_artifact(artifact_id=31)]}
        source, session = make_source(_response(body=body))

        result = source.fetch_artifacts(21)

        assert [a["id"] for a in result] == [31]
        assert session.calls[0]["method"] == "GET"
        assert session.calls[0]["url"] == (
            "https://api.github.com/repos/godotengine/godot/actions/runs/21/artifacts"
        )

    def test_missing_artifacts_key(self, make_source):
        source, _ = make_source(_response(body={"message": "Not Found"}))
        with pytest.raises(ParseFailure):
            source.fetch_artifacts(21)


class TestRetries:
    def test_retries_then_succeeds(self, make_source, sleeps):
        source, session = make_source(
            _response(502),
            requests.ConnectionError("reset"),
            _response(body={"artifacts": []}),
        )

        assert source.fetch_artifacts(21) == []
        assert len(session.calls) == 3
        assert len(sleeps) == 2

    def test_exponential_backoff(self, make_source, sleeps):
        source, _ = make_source(
            _response(500), _response(500), _response(500), api_delay_seconds=1.5
        )
        with pytest.raises(RequestFailure):
            source.fetch_artifacts(21)
        assert sleeps == [1.5, 3.0]

    def test_retry_after_honored(self, make_source, sleeps):
        source, _ = make_source(
            _response(403, {}, headers={"Retry-After": "7"}),
            _response(body={"artifacts": []}),
        )
        source.fetch_artifacts(21)
        assert sleeps == [7.0]

    def test_gives_up_after_max_retries(self, make_source):
        source, session = make_source(_response(500), _response(500), _response(500))
        with pytest.raises(RequestFailure, match="failed after 2 retries"):
            source.fetch_artifacts(21)
        assert len(session.calls) == 3


class TestCheckRates:
    def test_parses_rate_limit(self, make_source):
        source, _ = make_source(_response(body={"data": {"rateLimit": _RATES}}))
        rate_limit = source.check_rates()
        assert isinstance(rate_limit, RateLimit)
        assert rate_limit.remaining == 4999
        assert rate_limit.node_count == 10
