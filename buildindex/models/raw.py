"""Boundary schemas for raw remote payloads.

These models accept the field names used by the GitHub GraphQL API
(commit history with nested check suites) and the REST artifacts
endpoint.  Validation happens once, here; everything past this module
works with typed values only.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


def unwrap_connection(value: Any) -> Any:
    """Flatten a GraphQL ``{"edges": [{"node": ...}]}`` connection to a list.

    Plain lists pass through unchanged, and ``None`` becomes an empty list.
    """
    if value is None:
        return []
    if isinstance(value, dict) and "edges" in value:
        edges = value["edges"] or []
        if not isinstance(edges, list):
            raise ValueError("connection 'edges' must be a list")
        return [edge.get("node") if isinstance(edge, dict) else edge for edge in edges]
    return value


class _RawModel(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")


class RawWorkflow(_RawModel):
    database_id: int = Field(alias="databaseId")
    name: str


class RawWorkflowRun(_RawModel):
    database_id: int = Field(alias="databaseId")
    workflow: RawWorkflow


class RawCheckSuite(_RawModel):
    database_id: int = Field(alias="databaseId")
    url: str
    status: str
    conclusion: str | None = None
    created_at: str | None = Field(default=None, alias="createdAt")
    updated_at: str | None = Field(default=None, alias="updatedAt")
    workflow_run: RawWorkflowRun | None = Field(default=None, alias="workflowRun")


class RawCommit(_RawModel):
    oid: str = Field(min_length=1)
    message_headline: str = Field(default="", alias="messageHeadline")
    committed_date: str = Field(alias="committedDate")
    check_suites: list[RawCheckSuite] = Field(default=[], alias="checkSuites")

    @field_validator("check_suites", mode="before")
    @classmethod
    def _flatten_suites(cls, value: Any) -> Any:
        return unwrap_connection(value)


class RawArtifact(_RawModel):
    """One entry of ``GET /repos/{owner}/{repo}/actions/runs/{id}/artifacts``."""

    id: int
    name: str = Field(min_length=1)
    size_in_bytes: int = 0
    created_at: str | None = None
    updated_at: str | None = None
    expires_at: str | None = None
