from thought_history.batch.states import LifecycleState
from thought_history.config import HistoryConfig, parse_config
from thought_history.exceptions import (
    CommandExecutionError,
    ExportError,
    InitializationError,
    InvalidStateError,
    RemoteSyncError,
    ThoughtHistoryError,
    ValidationError,
)
from thought_history.facade import (
    CommitResult,
    StatusReport,
    SyncResult,
    ThoughtHistory,
)
from thought_history.models import ThoughtMetadata, ThoughtRecord

__all__ = [
    "CommandExecutionError",
    "CommitResult",
    "ExportError",
    "HistoryConfig",
    "InitializationError",
    "InvalidStateError",
    "LifecycleState",
    "RemoteSyncError",
    "StatusReport",
    "SyncResult",
    "ThoughtHistory",
    "ThoughtHistoryError",
    "ThoughtMetadata",
    "ThoughtRecord",
    "ValidationError",
    "parse_config",
]
