from __future__ import annotations

from dataclasses import dataclass

from thought_history.exceptions import RemoteSyncError


@dataclass(frozen=True)
class SyncResult:
    """Outcome of a push or pull.

    Remote sync is best-effort: failures are reported here instead of being
    raised, so the caller decides whether to log, retry or ignore them.
    """

    operation: str
    ok: bool
    skipped: bool = False
    error: RemoteSyncError | None = None

    @classmethod
    def success(cls, operation: str) -> SyncResult:
        return cls(operation=operation, ok=True)

    @classmethod
    def not_configured(cls, operation: str) -> SyncResult:
        return cls(operation=operation, ok=False, skipped=True)

    @classmethod
    def failure(cls, operation: str, error: RemoteSyncError) -> SyncResult:
        return cls(operation=operation, ok=False, error=error)
