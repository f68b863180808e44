from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from thought_history.models.thought import ThoughtRecord
from thought_history.models.utils import generate_batch_id, utcnow

MAIN_STEP = "main"
ANALYSIS_STEP = "analysis"


def agent_step(agent_id: str) -> str:
    return f"agent:{agent_id}"


@dataclass
class Batch:
    """The pending records flushed together in one commit-protocol run.

    ``completed_steps`` records which commits of the protocol already landed,
    so a batch that failed halfway can be resumed without re-committing them.
    """

    records: list[ThoughtRecord]
    created_at: datetime = field(default_factory=utcnow)
    batch_id: str = ""
    completed_steps: set[str] = field(default_factory=set)

    def __post_init__(self) -> None:
        if not self.records:
            raise ValueError("A batch needs at least one record")
        if not self.batch_id:
            self.batch_id = generate_batch_id(self.created_at)

    def __len__(self) -> int:
        return len(self.records)

    @property
    def agent_ids(self) -> list[str]:
        """Distinct agent IDs in first-seen order."""
        return list(dict.fromkeys(r.agent_id for r in self.records))

    def is_done(self, step: str) -> bool:
        return step in self.completed_steps

    def mark_done(self, step: str) -> None:
        self.completed_steps.add(step)
