"""Exceptions raised by the collaborators around the core.

The core transforms never raise for bad data; they return an
``OperationResult``.  The source, store and publisher raise these, and
the orchestrator maps them onto a ``FailureKind``.
"""

from __future__ import annotations

from buildindex.models.results import FailureKind


class BuildIndexError(RuntimeError):
    """Base class; ``kind`` decides the process exit code."""

    kind: FailureKind = FailureKind.EXEC


class RequestFailure(BuildIndexError):
    """Raised when the remote source cannot deliver data."""

    kind = FailureKind.REQUEST


class ParseFailure(BuildIndexError):
    """Raised when a remote payload is missing fields or malformed."""

    kind = FailureKind.PARSE


class IOFailure(BuildIndexError):
    """Raised when a snapshot or published page cannot be read or written."""

    kind = FailureKind.IO
