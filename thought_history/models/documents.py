"""Schemas of the JSON files committed to the repository.

Each file kind lives on its own branch:

    thoughts/agent-{agentId}.json       agent branch, overwritten per batch
    thoughts/summary-{batchId}.json     ``main``
    analysis/patterns-{batchId}.json    ``analysis/patterns``
"""

from __future__ import annotations

from datetime import datetime

from thought_history.models.base import CamelModel
from thought_history.models.thought import ThoughtRecord

THOUGHTS_DIR = "thoughts"
ANALYSIS_DIR = "analysis"
EXPORTS_DIR = "exports"
COLLABORATORS_DIR = "collaborators"


def agent_file_path(agent_id: str) -> str:
    return f"{THOUGHTS_DIR}/agent-{agent_id}.json"


def summary_file_path(batch_id: str) -> str:
    return f"{THOUGHTS_DIR}/summary-{batch_id}.json"


def analysis_file_path(batch_id: str) -> str:
    return f"{ANALYSIS_DIR}/patterns-{batch_id}.json"


def collaborator_file_path(collaborator_id: str) -> str:
    return f"{COLLABORATORS_DIR}/{collaborator_id}.json"


class AgentThoughtSummary(CamelModel):
    total_thoughts: int
    average_confidence: float
    average_quality: float


class AgentThoughtFile(CamelModel):
    agent_id: str
    batch_id: str
    timestamp: datetime
    thoughts: list[ThoughtRecord]
    summary: AgentThoughtSummary


class BatchSummaryStats(CamelModel):
    average_confidence: float
    average_quality: float
    high_confidence_thoughts: int
    low_confidence_thoughts: int


class BatchSummaryFile(CamelModel):
    batch_id: str
    timestamp: datetime
    total_thoughts: int
    agents: list[str]
    summary: BatchSummaryStats
