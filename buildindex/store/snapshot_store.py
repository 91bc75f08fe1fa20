"""JSON snapshot store — one file per (owner, repo, branch).

Layout: {data_dir}/{owner}.{repo}.{branch}.json

Loading never fails hard: a missing file is a first run, and an
unreadable or invalid file degrades to an empty snapshot with an IO
failure result.  Saving is atomic (temp file + rename), so a failed save
leaves the previous file as it was.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from pydantic import ValidationError

from buildindex.core.errors import IOFailure
from buildindex.core.queries import check_integrity
from buildindex.models.results import FailureKind, OperationResult
from buildindex.models.snapshot import Snapshot

logger = logging.getLogger(__name__)


def flatten_branch(branch: str) -> str:
    """Branch name as a single path segment (``release/4.2`` -> ``release_4.2``)."""
    return branch.replace("/", "_").replace("\\", "_")


class SnapshotStore:
    """Loads and saves snapshots as JSON files.

    Parameters
    ----------
    data_dir:
        Directory holding the snapshot files.  Created on first save.
    """

    def __init__(self, data_dir: Path | str) -> None:
        self._base = Path(data_dir)

    @property
    def data_dir(self) -> Path:
        return self._base

    @staticmethod
    def file_name(owner: str, repo: str, branch: str) -> str:
        """``{owner}.{repo}.{branch}.json``, with path separators flattened."""
        return f"{owner}.{repo}.{flatten_branch(branch)}.json"

    def path_for(self, owner: str, repo: str, branch: str) -> Path:
        return self._base / self.file_name(owner, repo, branch)

    # ------------------------------------------------------------------
    # Load
    # ------------------------------------------------------------------

    def load(self, owner: str, repo: str, branch: str) -> tuple[Snapshot, OperationResult]:
        """Load the stored snapshot, or an empty one.

        Returns the snapshot and a result: ``ok`` for a clean load or a
        first run, an IO failure when an existing file could not be used.
        """
        path = self.path_for(owner, repo, branch)
        if not path.exists():
            logger.info("No existing database at %s; starting empty.", path)
            return Snapshot(), OperationResult.success(message="first run")

        try:
            snapshot = Snapshot.model_validate_json(path.read_bytes())
        except (OSError, ValidationError) as exc:
            message = f"Error loading existing database file {path}: {exc}"
            logger.error(message)
            return Snapshot(), OperationResult.failure(FailureKind.IO, message)

        for problem in check_integrity(snapshot):
            logger.warning("Loaded snapshot %s: %s", path.name, problem)

        logger.info(
            "Loaded %s: %d commit(s), %d check suite(s), %d run(s).",
            path.name,
            len(snapshot.commits),
            len(snapshot.checks),
            len(snapshot.runs),
        )
        return snapshot, OperationResult.success(applied=len(snapshot.commits))

    # ------------------------------------------------------------------
    # Save
    # ------------------------------------------------------------------

    def save(self, snapshot: Snapshot, owner: str, repo: str, branch: str) -> Path:
        """Write *snapshot* atomically and return the file path.

        Raises ``IOFailure`` if the file cannot be written; the previous
        file is left untouched in that case.
        """
        path = self.path_for(owner, repo, branch)
        tmp_path = path.with_suffix(path.suffix + ".tmp")

        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(snapshot.model_dump_json(), encoding="utf-8")
            os.replace(tmp_path, path)
        except OSError as exc:
            if tmp_path.exists():
                tmp_path.unlink()
            raise IOFailure(f"Error saving database file {path}: {exc}") from exc

        logger.info("Stored database to %s.", path)
        return path
