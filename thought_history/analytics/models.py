from __future__ import annotations

import enum
from datetime import datetime

from pydantic import Field

from thought_history.models.base import CamelModel


class QualityTrend(enum.StrEnum):
    improving = "improving"
    stable = "stable"
    declining = "declining"


class RecommendationPriority(enum.StrEnum):
    high = "high"
    medium = "medium"


class Distribution(CamelModel):
    """Bucket counts for one metric. ``high + medium + low`` equals the batch size."""

    high: int = 0
    medium: int = 0
    low: int = 0

    @property
    def total(self) -> int:
        return self.high + self.medium + self.low


class AgentPerformance(CamelModel):
    total_thoughts: int
    average_confidence: float
    average_quality: float
    average_complexity: float


class PatternAnalysis(CamelModel):
    confidence_distribution: Distribution
    quality_distribution: Distribution
    complexity_distribution: Distribution
    agent_performance: dict[str, AgentPerformance] = Field(default_factory=dict)


class HighConfidenceInsight(CamelModel):
    thought: str
    confidence: float
    quality: float
    agent_id: str


class LowConfidenceWarning(CamelModel):
    thought: str
    confidence: float
    agent_id: str
    recommendation: str


class QualityTrendEntry(CamelModel):
    timestamp: datetime
    average_quality: float
    trend: QualityTrend


class Recommendation(CamelModel):
    type: str
    priority: RecommendationPriority
    message: str
    action: str


class InsightReport(CamelModel):
    high_confidence_insights: list[HighConfidenceInsight] = Field(
        default_factory=list
    )
    low_confidence_warnings: list[LowConfidenceWarning] = Field(default_factory=list)
    quality_trends: list[QualityTrendEntry] = Field(default_factory=list)
    recommendations: list[Recommendation] = Field(default_factory=list)


class AnalysisFile(CamelModel):
    """Document committed to ``analysis/patterns`` for every batch."""

    batch_id: str
    timestamp: datetime
    patterns: PatternAnalysis
    insights: InsightReport
