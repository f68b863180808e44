from __future__ import annotations

import pytest

from tests.conftest import START, make_thought
from thought_history.analytics import (
    QualityTrend,
    RecommendationPriority,
    analyze_batch,
    analyze_patterns,
    distribution,
    generate_insights,
    mean,
    quality_trend,
)
from thought_history.analytics.insights import LOW_CONFIDENCE_RECOMMENDATION, preview
from thought_history.batch.grouper import partition_by_agent
from thought_history.models import Batch, ThoughtRecord


def _records(*specs: tuple[str, float, float]) -> list[ThoughtRecord]:
    return [
        ThoughtRecord.model_validate(make_thought(agent, conf, quality=quality))
        for agent, conf, quality in specs
    ]


# ── Grouping ─────────────────────────────────────────────────────────


def test_partition_by_agent_preserves_order() -> None:
    records = _records(("b", 0.1, 0.5), ("a", 0.2, 0.5), ("b", 0.3, 0.5))
    groups = partition_by_agent(records)

    assert list(groups) == ["b", "a"]
    assert [r.confidence for r in groups["b"]] == [0.1, 0.3]
    assert sum(len(g) for g in groups.values()) == len(records)


# ── Patterns ─────────────────────────────────────────────────────────


def test_mean_of_empty_is_zero() -> None:
    assert mean([]) == 0.0


@pytest.mark.parametrize(
    ("value", "bucket"),
    [(0.71, "high"), (0.7, "medium"), (0.4, "medium"), (0.39, "low"), (1.0, "high")],
)
def test_distribution_bucket_boundaries(value: float, bucket: str) -> None:
    dist = distribution([value])
    assert getattr(dist, bucket) == 1
    assert dist.total == 1


def test_distribution_buckets_sum_to_batch_size() -> None:
    records = _records(
        ("a", 0.9, 0.2), ("a", 0.5, 0.8), ("b", 0.1, 0.45), ("c", 0.75, 0.0)
    )
    patterns = analyze_patterns(records)

    for dist in (
        patterns.confidence_distribution,
        patterns.quality_distribution,
        patterns.complexity_distribution,
    ):
        assert dist.total == len(records)
    assert patterns.confidence_distribution.high == 2
    assert patterns.complexity_distribution.medium == 4


def test_agent_performance_averages() -> None:
    records = _records(("a", 0.9, 0.6), ("a", 0.5, 0.4), ("b", 0.2, 1.0))
    performance = analyze_patterns(records).agent_performance

    assert set(performance) == {"a", "b"}
    assert performance["a"].total_thoughts == 2
    assert performance["a"].average_confidence == pytest.approx(0.7)
    assert performance["a"].average_quality == pytest.approx(0.5)
    assert performance["b"].average_complexity == pytest.approx(0.5)


# ── Insights ─────────────────────────────────────────────────────────


@pytest.mark.parametrize(
    ("quality", "trend"),
    [
        (0.61, QualityTrend.improving),
        (0.6, QualityTrend.stable),
        (0.4, QualityTrend.stable),
        (0.39, QualityTrend.declining),
    ],
)
def test_quality_trend_thresholds(quality: float, trend: QualityTrend) -> None:
    assert quality_trend(quality) is trend


def test_preview_truncates_long_thoughts() -> None:
    assert preview("short") == "short"
    assert preview("x" * 100) == "x" * 100
    assert preview("x" * 150) == "x" * 100 + "..."


def test_high_and_low_confidence_insights() -> None:
    records = _records(("a", 0.81, 0.9), ("a", 0.8, 0.9), ("b", 0.29, 0.9))
    report = generate_insights(records, now=START)

    assert [i.confidence for i in report.high_confidence_insights] == [0.81]
    assert report.high_confidence_insights[0].agent_id == "a"
    assert [w.agent_id for w in report.low_confidence_warnings] == ["b"]
    assert report.low_confidence_warnings[0].recommendation == (
        LOW_CONFIDENCE_RECOMMENDATION
    )
    assert len(report.quality_trends) == 1
    assert report.quality_trends[0].timestamp == START
    assert report.quality_trends[0].trend is QualityTrend.improving


def test_confidence_recommendation_when_low_rate_exceeds_twenty_percent() -> None:
    # 1 of 4 low-confidence thoughts is 25% > 20%.
    records = _records(
        ("a", 0.1, 0.9), ("a", 0.5, 0.9), ("a", 0.5, 0.9), ("a", 0.5, 0.9)
    )
    report = generate_insights(records, now=START)

    assert [r.type for r in report.recommendations] == ["confidence"]
    rec = report.recommendations[0]
    assert rec.priority is RecommendationPriority.high
    assert rec.message == "High rate of low-confidence thoughts detected"
    assert rec.action == "Review agent training and context provision"


def test_no_confidence_recommendation_at_exactly_twenty_percent() -> None:
    records = _records(
        ("a", 0.1, 0.9),
        ("a", 0.5, 0.9),
        ("a", 0.5, 0.9),
        ("a", 0.5, 0.9),
        ("a", 0.5, 0.9),
    )
    assert generate_insights(records, now=START).recommendations == []


def test_quality_recommendation_below_half() -> None:
    records = _records(("a", 0.5, 0.3), ("b", 0.6, 0.6))
    report = generate_insights(records, now=START)

    assert [r.type for r in report.recommendations] == ["quality"]
    rec = report.recommendations[0]
    assert rec.priority is RecommendationPriority.medium
    assert rec.message == "Reasoning quality below optimal levels"
    assert rec.action == "Implement structured reasoning frameworks"


def test_analyze_batch_document_shape() -> None:
    batch = Batch(
        records=_records(("a", 0.9, 0.8), ("b", 0.2, 0.2)), created_at=START
    )
    document = analyze_batch(batch, now=START).to_document()

    assert document["batchId"] == batch.batch_id
    assert set(document["patterns"]) == {
        "confidenceDistribution",
        "qualityDistribution",
        "complexityDistribution",
        "agentPerformance",
    }
    assert set(document["insights"]) == {
        "highConfidenceInsights",
        "lowConfidenceWarnings",
        "qualityTrends",
        "recommendations",
    }
    assert document["patterns"]["agentPerformance"]["a"]["totalThoughts"] == 1
    assert document["insights"]["qualityTrends"][0]["trend"] == "stable"
