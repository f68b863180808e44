from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable

from thought_history.models.thought import ThoughtRecord


def partition_by_agent(
    records: Iterable[ThoughtRecord],
) -> dict[str, list[ThoughtRecord]]:
    """Group *records* by producing agent.

    Agents appear in first-seen order and each group keeps the relative order
    of its records. Every record lands in exactly one group.
    """
    groups: dict[str, list[ThoughtRecord]] = defaultdict(list)
    for record in records:
        groups[record.agent_id].append(record)
    return dict(groups)
