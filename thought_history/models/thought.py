from __future__ import annotations

import re
from datetime import datetime

from pydantic import ConfigDict, Field, field_validator

from thought_history.models.base import CamelModel
from thought_history.models.utils import utcnow

# Agent IDs end up inside branch, tag and file names.
AGENT_ID_PATTERN = re.compile(r"[A-Za-z0-9_][A-Za-z0-9_.-]*")


def validate_ref_component(value: str, label: str = "agentId") -> str:
    """Reject values that cannot be embedded in a git branch or tag name."""
    if (
        not AGENT_ID_PATTERN.fullmatch(value)
        or ".." in value
        or value.endswith(".lock")
    ):
        raise ValueError(f"{label} {value!r} cannot be used in a branch or tag name")
    return value


class ThoughtMetadata(CamelModel):
    """Quality scores attached to a thought.

    Unknown keys supplied by the producer are kept and persisted verbatim.
    """

    model_config = ConfigDict(frozen=True, extra="allow", allow_inf_nan=False)

    reasoning_quality: float = Field(ge=0.0, le=1.0)
    thought_complexity: float = Field(ge=0.0, le=1.0)


class ThoughtRecord(CamelModel):
    """One agent-produced observation. Immutable once created."""

    model_config = ConfigDict(frozen=True, extra="ignore", allow_inf_nan=False)

    agent_id: str = Field(min_length=1)
    thought: str
    confidence: float = Field(ge=0.0, le=1.0)
    metadata: ThoughtMetadata
    timestamp: datetime = Field(default_factory=utcnow)

    @field_validator("agent_id")
    @classmethod
    def _check_agent_id(cls, value: str) -> str:
        return validate_ref_component(value)

    @property
    def reasoning_quality(self) -> float:
        return self.metadata.reasoning_quality

    @property
    def thought_complexity(self) -> float:
        return self.metadata.thought_complexity
