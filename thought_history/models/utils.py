"""Shared ID and clock helpers for all domain models."""

from __future__ import annotations

import uuid
from datetime import UTC, datetime


def utcnow() -> datetime:
    return datetime.now(UTC)


def generate_batch_id(created_at: datetime | None = None) -> str:
    """Return a new unique batch ID.

    The millisecond prefix keeps IDs roughly sortable by creation time; the
    random suffix keeps two batches created in the same millisecond apart.
    """
    created_at = created_at or utcnow()
    millis = int(created_at.timestamp() * 1000)
    return f"batch_{millis}_{uuid.uuid4().hex[:8]}"
