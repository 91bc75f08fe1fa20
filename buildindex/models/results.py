"""Failure kinds and operation results reported back to the orchestrator."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict


class FailureKind(str, Enum):
    """Why an operation did not fully succeed."""

    REQUEST = "request_failure"
    PARSE = "parse_failure"
    EXEC = "exec_failure"
    IO = "io_failure"

    @property
    def exit_code(self) -> int:
        return EXIT_CODES[self]


# Process exit codes, stable across releases (scripts depend on them).
EXIT_CODES: dict[FailureKind, int] = {
    FailureKind.REQUEST: 1,
    FailureKind.PARSE: 2,
    FailureKind.EXEC: 3,
    FailureKind.IO: 4,
}


class OperationResult(BaseModel):
    """Outcome of a single core operation.

    ``applied`` counts the items that were merged before the operation
    stopped.  Those items are not rolled back on failure.
    """

    model_config = ConfigDict(frozen=True)

    ok: bool = True
    kind: FailureKind | None = None
    message: str = ""
    applied: int = 0

    @classmethod
    def success(cls, applied: int = 0, message: str = "") -> OperationResult:
        return cls(ok=True, applied=applied, message=message)

    @classmethod
    def failure(
        cls, kind: FailureKind, message: str, *, applied: int = 0
    ) -> OperationResult:
        return cls(ok=False, kind=kind, message=message, applied=applied)
