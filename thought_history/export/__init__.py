from thought_history.export.manager import EXPORT_FORMATS, ExportManager
from thought_history.export.snapshot import Snapshot, SnapshotBuilder
from thought_history.export.types import SyncResult

__all__ = [
    "EXPORT_FORMATS",
    "ExportManager",
    "Snapshot",
    "SnapshotBuilder",
    "SyncResult",
]
