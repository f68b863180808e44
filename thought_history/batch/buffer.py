from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from thought_history.exceptions import ValidationError
from thought_history.models.thought import ThoughtRecord


def coerce_record(record: ThoughtRecord | Mapping[str, Any]) -> ThoughtRecord:
    """Validate *record* into a :class:`ThoughtRecord`.

    Accepts an existing record or a mapping using either camelCase or
    snake_case keys.
    """
    if isinstance(record, ThoughtRecord):
        return record
    if not isinstance(record, Mapping):
        raise ValidationError(
            f"Expected a ThoughtRecord or a mapping, got {type(record).__name__}"
        )
    try:
        return ThoughtRecord.model_validate(dict(record))
    except PydanticValidationError as exc:
        errors = exc.errors(include_url=False, include_context=False)
        fields = ", ".join(".".join(str(p) for p in e["loc"]) for e in errors)
        raise ValidationError(
            f"Invalid thought record ({fields})", errors=errors
        ) from exc


class IngestBuffer:
    """Records accepted but not yet durably committed."""

    def __init__(self) -> None:
        self._records: list[ThoughtRecord] = []

    def __len__(self) -> int:
        return len(self._records)

    def __bool__(self) -> bool:
        return bool(self._records)

    def add(self, record: ThoughtRecord | Mapping[str, Any]) -> ThoughtRecord:
        validated = coerce_record(record)
        self._records.append(validated)
        return validated

    def snapshot(self) -> list[ThoughtRecord]:
        return list(self._records)

    def discard_head(self, count: int) -> None:
        """Drop the *count* oldest records once they are committed."""
        del self._records[:count]
