"""Custom exceptions for thought-history operations."""

from __future__ import annotations

from collections.abc import Sequence


class ThoughtHistoryError(Exception):
    """Base class for every error raised by thought_history."""


class ValidationError(ThoughtHistoryError, ValueError):
    """Raised when a thought record is malformed.

    Rejected records never enter the ingest buffer.
    """

    def __init__(self, message: str, errors: list[dict] | None = None):
        self.message = message
        self.errors = errors or []
        super().__init__(self.message)


class InitializationError(ThoughtHistoryError):
    """Raised when the repository cannot be brought to the active state."""

    pass


class CommandExecutionError(ThoughtHistoryError):
    """A repository backend command exited with a non-zero status."""

    def __init__(
        self,
        command: Sequence[str],
        returncode: int | None,
        stderr: str = "",
    ):
        self.command = list(command)
        self.returncode = returncode
        self.stderr = stderr.strip()
        detail = f": {self.stderr}" if self.stderr else ""
        self.message = (
            f"Command failed ({returncode}): {' '.join(self.command)}{detail}"
        )
        super().__init__(self.message)


class RemoteSyncError(ThoughtHistoryError):
    """Push or pull against the configured remote failed.

    Never raised by the public API; it is returned inside a ``SyncResult``.
    """

    def __init__(self, operation: str, message: str | None = None):
        self.operation = operation
        self.message = (
            f"Remote {operation} failed: {message}"
            if message
            else f"Remote {operation} failed"
        )
        super().__init__(self.message)


class ExportError(ThoughtHistoryError):
    """Raised when an export cannot be produced at all."""

    pass


class InvalidStateError(ThoughtHistoryError):
    """Raised when an operation is called in the wrong lifecycle state."""

    pass
