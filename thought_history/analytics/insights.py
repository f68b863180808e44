from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime

from thought_history.analytics.models import (
    HighConfidenceInsight,
    InsightReport,
    LowConfidenceWarning,
    QualityTrend,
    QualityTrendEntry,
    Recommendation,
    RecommendationPriority,
)
from thought_history.analytics.patterns import mean
from thought_history.models.thought import ThoughtRecord
from thought_history.models.utils import utcnow

HIGH_CONFIDENCE_THRESHOLD = 0.8
LOW_CONFIDENCE_THRESHOLD = 0.3
IMPROVING_QUALITY_THRESHOLD = 0.6
DECLINING_QUALITY_THRESHOLD = 0.4
LOW_CONFIDENCE_RATE_LIMIT = 0.2
QUALITY_RECOMMENDATION_THRESHOLD = 0.5

PREVIEW_LENGTH = 100
LOW_CONFIDENCE_RECOMMENDATION = "Consider providing more context or training data"


def preview(text: str, length: int = PREVIEW_LENGTH) -> str:
    if len(text) <= length:
        return text
    return text[:length] + "..."


def quality_trend(average_quality: float) -> QualityTrend:
    if average_quality > IMPROVING_QUALITY_THRESHOLD:
        return QualityTrend.improving
    if average_quality < DECLINING_QUALITY_THRESHOLD:
        return QualityTrend.declining
    return QualityTrend.stable


def generate_insights(
    records: Sequence[ThoughtRecord],
    *,
    now: datetime | None = None,
) -> InsightReport:
    """Derive insights, warnings, a quality trend and recommendations."""
    report = InsightReport()

    report.high_confidence_insights = [
        HighConfidenceInsight(
            thought=preview(r.thought),
            confidence=r.confidence,
            quality=r.reasoning_quality,
            agent_id=r.agent_id,
        )
        for r in records
        if r.confidence > HIGH_CONFIDENCE_THRESHOLD
    ]

    low_confidence = [r for r in records if r.confidence < LOW_CONFIDENCE_THRESHOLD]
    report.low_confidence_warnings = [
        LowConfidenceWarning(
            thought=preview(r.thought),
            confidence=r.confidence,
            agent_id=r.agent_id,
            recommendation=LOW_CONFIDENCE_RECOMMENDATION,
        )
        for r in low_confidence
    ]

    average_quality = mean([r.reasoning_quality for r in records])
    report.quality_trends.append(
        QualityTrendEntry(
            timestamp=now or utcnow(),
            average_quality=average_quality,
            trend=quality_trend(average_quality),
        )
    )

    if len(low_confidence) > len(records) * LOW_CONFIDENCE_RATE_LIMIT:
        report.recommendations.append(
            Recommendation(
                type="confidence",
                priority=RecommendationPriority.high,
                message="High rate of low-confidence thoughts detected",
                action="Review agent training and context provision",
            )
        )

    if average_quality < QUALITY_RECOMMENDATION_THRESHOLD:
        report.recommendations.append(
            Recommendation(
                type="quality",
                priority=RecommendationPriority.medium,
                message="Reasoning quality below optimal levels",
                action="Implement structured reasoning frameworks",
            )
        )

    return report
