"""Arguments and config handling shared by the CLI commands."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import typer

from buildindex.config import IndexerConfig

OWNER = typer.Argument(..., help="Repository owner, e.g. 'godotengine'.")
REPO = typer.Argument(..., help="Repository name, e.g. 'godot'.")
BRANCH = typer.Argument(..., help="Branch to track, e.g. 'master'.")


def data_dir_option() -> Any:
    return typer.Option(
        None,
        "--data-dir",
        "-d",
        help="Directory of snapshot files (default: BUILDINDEX_DATA_DIR or out/data).",
    )


def resolve_config(**overrides: Any) -> IndexerConfig:
    """Environment-driven config with non-None CLI overrides applied."""
    config = IndexerConfig()
    update = {key: value for key, value in overrides.items() if value is not None}
    if "data_dir" in update:
        update["data_dir"] = Path(update["data_dir"])
    if "publish_dir" in update:
        update["publish_dir"] = Path(update["publish_dir"])
    return config.model_copy(update=update) if update else config
