from __future__ import annotations

from collections.abc import Callable, Sequence

from thought_history.analytics.models import (
    AgentPerformance,
    Distribution,
    PatternAnalysis,
)
from thought_history.batch.grouper import partition_by_agent
from thought_history.models.thought import ThoughtRecord

HIGH_BUCKET_THRESHOLD = 0.7
LOW_BUCKET_THRESHOLD = 0.4


def mean(values: Sequence[float]) -> float:
    if not values:
        return 0.0
    return sum(values) / len(values)


def distribution(values: Sequence[float]) -> Distribution:
    """Bucket *values* into high (> 0.7), medium (0.4–0.7) and low (< 0.4)."""
    dist = Distribution()
    for value in values:
        if value > HIGH_BUCKET_THRESHOLD:
            dist.high += 1
        elif value >= LOW_BUCKET_THRESHOLD:
            dist.medium += 1
        else:
            dist.low += 1
    return dist


def _metric(
    records: Sequence[ThoughtRecord], getter: Callable[[ThoughtRecord], float]
) -> list[float]:
    return [getter(r) for r in records]


def agent_performance(records: Sequence[ThoughtRecord]) -> AgentPerformance:
    return AgentPerformance(
        total_thoughts=len(records),
        average_confidence=mean(_metric(records, lambda r: r.confidence)),
        average_quality=mean(_metric(records, lambda r: r.reasoning_quality)),
        average_complexity=mean(_metric(records, lambda r: r.thought_complexity)),
    )


def analyze_patterns(records: Sequence[ThoughtRecord]) -> PatternAnalysis:
    """Distribution buckets for every metric plus per-agent aggregates."""
    return PatternAnalysis(
        confidence_distribution=distribution(
            _metric(records, lambda r: r.confidence)
        ),
        quality_distribution=distribution(
            _metric(records, lambda r: r.reasoning_quality)
        ),
        complexity_distribution=distribution(
            _metric(records, lambda r: r.thought_complexity)
        ),
        agent_performance={
            agent_id: agent_performance(group)
            for agent_id, group in partition_by_agent(records).items()
        },
    )
