"""Indexer configuration — env-driven.

Centralized settings using pydantic-settings.  Reads from a .env file and
BUILDINDEX_* environment variables.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_RETENTION_KEEP = 20


class IndexerConfig(BaseSettings):
    """Indexer configuration with environment variable overrides.

    Examples
    --------
    Override via environment::

        export BUILDINDEX_LOG_LEVEL=DEBUG
        export BUILDINDEX_DATA_DIR=/srv/builds/data
        export BUILDINDEX_RETENTION_KEEP=40

    Or via .env file::

        BUILDINDEX_LOG_RESPONSES=true
        GITHUB_TOKEN=ghp_...
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="BUILDINDEX_",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # Runtime
    log_level: str = "INFO"

    # Storage paths
    data_dir: Path = Path("out/data")
    logs_dir: Path = Path("logs")
    publish_dir: Path = Path("out")

    # Retention and fetch window
    retention_keep: int = Field(default=DEFAULT_RETENTION_KEEP, ge=0)
    history_depth: int = Field(default=10, ge=1, le=100)
    check_suites_per_commit: int = Field(default=20, ge=1, le=100)

    # Remote API
    graphql_url: str = "https://api.github.com/graphql"
    rest_url: str = "https://api.github.com"
    github_token: str = Field(
        default="",
        validation_alias=AliasChoices(
            "BUILDINDEX_GITHUB_TOKEN", "GRAPHQL_TOKEN", "GITHUB_TOKEN"
        ),
    )
    api_delay_seconds: float = Field(default=1.5, ge=0)
    max_retries: int = Field(default=5, ge=0)
    request_timeout_seconds: float = Field(default=30.0, gt=0)

    # Behaviour
    log_responses: bool = False
    wait_for_completed_runs: bool = True
