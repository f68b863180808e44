from __future__ import annotations

from collections.abc import AsyncGenerator
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Any

import pytest

from thought_history import HistoryConfig, ThoughtHistory
from thought_history.backend.memory import InMemoryBackend

START = datetime(2025, 3, 14, 9, 30, tzinfo=UTC)


class FakeClock:
    """Deterministic clock; advance it explicitly from tests."""

    def __init__(self, start: datetime = START) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **delta: float) -> datetime:
        self.now += timedelta(**delta)
        return self.now


def make_thought(
    agent_id: str = "planner",
    confidence: float = 0.5,
    *,
    quality: float = 0.5,
    complexity: float = 0.5,
    thought: str | None = None,
    **metadata: Any,
) -> dict[str, Any]:
    """Build a camelCase thought record as an agent would send it."""
    return {
        "agentId": agent_id,
        "thought": thought or f"{agent_id} thinks at {confidence}",
        "confidence": confidence,
        "metadata": {
            "reasoningQuality": quality,
            "thoughtComplexity": complexity,
            **metadata,
        },
        "timestamp": START.isoformat(),
    }


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def backend(tmp_path: Path) -> InMemoryBackend:
    return InMemoryBackend(tmp_path / "repo")


@pytest.fixture()
def config(tmp_path: Path) -> HistoryConfig:
    return HistoryConfig(
        repo_path=str(tmp_path / "repo"),
        backend="memory",
        commit_interval=30_000,
        max_commits_per_day=100,
    )


@pytest.fixture()
async def history(
    config: HistoryConfig, backend: InMemoryBackend, clock: FakeClock
) -> AsyncGenerator[ThoughtHistory]:
    """An initialized instance on the in-memory backend."""
    th = ThoughtHistory(config, backend, clock=clock)
    await th.initialize()
    yield th
    if th.state.value != "CLOSED":
        await th.shutdown()
