from __future__ import annotations

from datetime import datetime

from thought_history.analytics.insights import generate_insights
from thought_history.analytics.models import AnalysisFile
from thought_history.analytics.patterns import analyze_patterns
from thought_history.models.batch import Batch
from thought_history.models.utils import utcnow


def analyze_batch(batch: Batch, *, now: datetime | None = None) -> AnalysisFile:
    """Build the ``analysis/patterns`` document for *batch*."""
    now = now or utcnow()
    return AnalysisFile(
        batch_id=batch.batch_id,
        timestamp=now,
        patterns=analyze_patterns(batch.records),
        insights=generate_insights(batch.records, now=now),
    )
