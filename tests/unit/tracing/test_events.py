"""Unit tests for Langfuse ingestion event builders."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta, timezone

from langfuse.api import (
    CreateEventBody,
    CreateGenerationBody,
    CreateSpanBody,
    ScoreBody,
    TraceBody,
    UpdateGenerationBody,
    UpdateSpanBody,
)

from coda.tracing.events import (
    create_event,
    create_generation,
    create_score,
    create_span,
    create_trace,
    update_generation,
    update_span,
    utc_timestamp,
)


class TestUtcTimestamp:
    """Tests for utc_timestamp."""

    def test_formats_with_z_suffix(self) -> None:
        """Renders UTC times with a Z suffix."""
        value = datetime(2025, 1, 2, 3, 4, 5, tzinfo=UTC)
        assert utc_timestamp(value) == "2025-01-02T03:04:05Z"

    def test_converts_offsets(self) -> None:
        """Converts other offsets to UTC."""
        value = datetime(2025, 1, 2, 12, 0, tzinfo=timezone(timedelta(hours=9)))
        assert utc_timestamp(value) == "2025-01-02T03:00:00Z"


class TestEventBuilders:
    """Tests for event builder helpers."""

    def test_event_types(self) -> None:
        """Each helper wraps its body in the matching envelope."""
        cases = [
            (create_trace("e", TraceBody(id="t")), "trace-create"),
            (create_generation("e", CreateGenerationBody(id="g")), "generation-create"),
            (update_generation("e", UpdateGenerationBody(id="g")), "generation-update"),
            (create_span("e", CreateSpanBody(id="s")), "span-create"),
            (update_span("e", UpdateSpanBody(id="s")), "span-update"),
            (create_score("e", ScoreBody(trace_id="t", name="quality", value=0.9)), "score-create"),
            (create_event("e", CreateEventBody(name="cache-hit")), "event-create"),
        ]

        for event, expected in cases:
            assert event.type == expected
            assert event.id == "e"
            assert event.timestamp.endswith("Z")

    def test_keeps_body(self) -> None:
        """The body is carried unchanged."""
        trace = TraceBody(id="t1", user_id="u1", tags=["gpt-4o", "openai"])

        event = create_trace("e1", trace)

        assert event.body == trace

    def test_serializes_camel_case_without_unset_fields(self) -> None:
        """Envelopes dump with camelCase keys and drop unset fields."""
        generation = CreateGenerationBody(
            id="g1",
            trace_id="t1",
            model="gpt-4o",
            usage_details={"prompt_tokens": 3},
        )

        payload = create_generation("e1", generation).dict()

        assert payload["type"] == "generation-create"
        assert "metadata" not in payload
        assert payload["body"] == {
            "id": "g1",
            "traceId": "t1",
            "model": "gpt-4o",
            "usageDetails": {"prompt_tokens": 3},
        }
