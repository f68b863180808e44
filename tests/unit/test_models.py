from __future__ import annotations

import json
import math

import pytest
from pydantic import ValidationError as PydanticValidationError

from tests.conftest import START, make_thought
from thought_history.batch.buffer import IngestBuffer, coerce_record
from thought_history.exceptions import ValidationError
from thought_history.models import Batch, ThoughtRecord, generate_batch_id
from thought_history.models.thought import validate_ref_component

# ── ThoughtRecord ────────────────────────────────────────────────────


def test_record_accepts_camel_case_payload() -> None:
    record = ThoughtRecord.model_validate(make_thought("planner", 0.9, quality=0.8))
    assert record.agent_id == "planner"
    assert record.confidence == 0.9
    assert record.reasoning_quality == 0.8
    assert record.thought_complexity == 0.5
    assert record.timestamp == START


def test_record_accepts_snake_case_fields() -> None:
    record = ThoughtRecord(
        agent_id="coder",
        thought="refactor",
        confidence=0.4,
        metadata={"reasoning_quality": 0.3, "thought_complexity": 0.2},
    )
    assert record.metadata.reasoning_quality == 0.3
    assert record.timestamp.tzinfo is not None


def test_record_round_trips_through_camel_case_json() -> None:
    record = ThoughtRecord.model_validate(make_thought("planner", 0.7, source="slack"))
    document = json.loads(record.to_json())

    assert document["agentId"] == "planner"
    assert document["metadata"]["reasoningQuality"] == 0.5
    # Unknown metadata keys are kept verbatim.
    assert document["metadata"]["source"] == "slack"
    assert ThoughtRecord.model_validate(document) == record


def test_record_is_immutable() -> None:
    record = ThoughtRecord.model_validate(make_thought())
    with pytest.raises(PydanticValidationError):
        record.confidence = 0.1  # type: ignore[misc]


@pytest.mark.parametrize("confidence", [-0.01, 1.01, math.nan, math.inf])
def test_record_rejects_out_of_range_confidence(confidence: float) -> None:
    with pytest.raises(PydanticValidationError):
        ThoughtRecord.model_validate(make_thought(confidence=confidence))


def test_record_accepts_boundary_scores() -> None:
    low = ThoughtRecord.model_validate(make_thought(confidence=0.0, quality=0.0))
    high = ThoughtRecord.model_validate(make_thought(confidence=1.0, complexity=1.0))
    assert low.confidence == 0.0
    assert high.thought_complexity == 1.0


def test_record_requires_metadata() -> None:
    payload = make_thought()
    del payload["metadata"]
    with pytest.raises(PydanticValidationError):
        ThoughtRecord.model_validate(payload)


@pytest.mark.parametrize(
    "agent_id", ["", "has space", "../escape", "a..b", "ends.lock", "-leading", "a/b"]
)
def test_record_rejects_agent_ids_unusable_in_refs(agent_id: str) -> None:
    with pytest.raises(PydanticValidationError):
        ThoughtRecord.model_validate(make_thought(agent_id))


@pytest.mark.parametrize("agent_id", ["planner", "agent_7", "gpt-4o", "v1.2"])
def test_validate_ref_component_accepts_plain_ids(agent_id: str) -> None:
    assert validate_ref_component(agent_id) == agent_id


# ── Buffer ───────────────────────────────────────────────────────────


def test_coerce_record_wraps_pydantic_errors() -> None:
    with pytest.raises(ValidationError) as exc_info:
        coerce_record(make_thought(confidence=2.0))

    assert isinstance(exc_info.value, ValueError)
    assert "confidence" in str(exc_info.value)
    assert exc_info.value.errors


def test_coerce_record_rejects_non_mappings() -> None:
    with pytest.raises(ValidationError, match="mapping"):
        coerce_record(["not", "a", "record"])  # type: ignore[arg-type]


def test_buffer_keeps_arrival_order_and_discards_head() -> None:
    buffer = IngestBuffer()
    assert not buffer

    for agent in ("a", "b", "c"):
        buffer.add(make_thought(agent))
    assert len(buffer) == 3

    buffer.discard_head(2)
    assert [r.agent_id for r in buffer.snapshot()] == ["c"]


def test_buffer_rejects_invalid_record_without_buffering() -> None:
    buffer = IngestBuffer()
    with pytest.raises(ValidationError):
        buffer.add(make_thought(confidence=-1))
    assert len(buffer) == 0


# ── Batch ────────────────────────────────────────────────────────────


def test_batch_id_format() -> None:
    batch_id = generate_batch_id(START)
    prefix, millis, suffix = batch_id.split("_")
    assert prefix == "batch"
    assert int(millis) == int(START.timestamp() * 1000)
    assert len(suffix) == 8


def test_batch_ids_are_unique_within_a_millisecond() -> None:
    assert generate_batch_id(START) != generate_batch_id(START)


def test_batch_agent_ids_in_first_seen_order() -> None:
    records = [
        ThoughtRecord.model_validate(make_thought(agent))
        for agent in ("b", "a", "b", "c")
    ]
    batch = Batch(records=records, created_at=START)
    assert batch.agent_ids == ["b", "a", "c"]
    assert len(batch) == 4


def test_batch_rejects_empty_record_list() -> None:
    with pytest.raises(ValueError):
        Batch(records=[])


def test_batch_tracks_completed_steps() -> None:
    batch = Batch(records=[ThoughtRecord.model_validate(make_thought())])
    assert not batch.is_done("main")
    batch.mark_done("main")
    assert batch.is_done("main")
