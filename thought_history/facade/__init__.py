from thought_history.facade.core import ThoughtHistory
from thought_history.facade.types import CommitResult, StatusReport, SyncResult

__all__ = [
    "CommitResult",
    "StatusReport",
    "SyncResult",
    "ThoughtHistory",
]
