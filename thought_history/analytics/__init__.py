from thought_history.analytics.engine import analyze_batch
from thought_history.analytics.insights import generate_insights, quality_trend
from thought_history.analytics.models import (
    AgentPerformance,
    AnalysisFile,
    Distribution,
    InsightReport,
    PatternAnalysis,
    QualityTrend,
    Recommendation,
    RecommendationPriority,
)
from thought_history.analytics.patterns import analyze_patterns, distribution, mean

__all__ = [
    "AgentPerformance",
    "AnalysisFile",
    "Distribution",
    "InsightReport",
    "PatternAnalysis",
    "QualityTrend",
    "Recommendation",
    "RecommendationPriority",
    "analyze_batch",
    "analyze_patterns",
    "distribution",
    "generate_insights",
    "mean",
    "quality_trend",
]
