"""Public return types for the thought_history API."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from thought_history.batch.protocol import CommitResult
from thought_history.export.types import SyncResult


@dataclass
class StatusReport:
    """Result from :meth:`ThoughtHistory.get_status`."""

    has_changes: bool
    current_branch: str | None
    branches: list[str] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)
    pending_thoughts: int = 0
    last_commit_at: datetime | None = None
    daily_commit_count: int = 0
    state: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "hasChanges": self.has_changes,
            "currentBranch": self.current_branch,
            "branches": self.branches,
            "tags": self.tags,
            "pendingThoughts": self.pending_thoughts,
            "lastCommitAt": (
                self.last_commit_at.isoformat() if self.last_commit_at else None
            ),
            "dailyCommitCount": self.daily_commit_count,
            "state": self.state,
        }


__all__ = ["CommitResult", "StatusReport", "SyncResult"]
