from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from thought_history.batch.buffer import IngestBuffer
from thought_history.batch.policy import RateLimitPolicy
from thought_history.models.batch import Batch


@dataclass(frozen=True)
class TagInfo:
    message: str
    timestamp: datetime | None = None


@dataclass
class RepositoryState:
    """Mutable state owned by one repository instance.

    ``inflight`` holds a batch whose commit sequence failed partway; it is
    resumed before any new batch is cut from the buffer.
    """

    buffer: IngestBuffer
    policy: RateLimitPolicy
    known_branches: set[str] = field(default_factory=set)
    known_tags: dict[str, TagInfo] = field(default_factory=dict)
    collaborators: set[str] = field(default_factory=set)
    inflight: Batch | None = None

    @property
    def pending_count(self) -> int:
        return len(self.buffer)
