"""Langfuse ingestion event builders.

Wraps the Langfuse API's typed bodies in their ``/api/public/ingestion``
envelopes. Each envelope gets its own event ID, which Langfuse uses to
deduplicate; the body ID identifies the trace or observation itself.
"""

from __future__ import annotations

from datetime import UTC, datetime

from langfuse.api import (
    CreateEventBody,
    CreateGenerationBody,
    CreateSpanBody,
    IngestionEvent,
    IngestionEvent_EventCreate,
    IngestionEvent_GenerationCreate,
    IngestionEvent_GenerationUpdate,
    IngestionEvent_ScoreCreate,
    IngestionEvent_SpanCreate,
    IngestionEvent_SpanUpdate,
    IngestionEvent_TraceCreate,
    ScoreBody,
    TraceBody,
    UpdateGenerationBody,
    UpdateSpanBody,
)


def utc_timestamp(value: datetime | None = None) -> str:
    """Format a timestamp as RFC 3339 in UTC."""
    value = value or datetime.now(UTC)
    return value.astimezone(UTC).isoformat().replace("+00:00", "Z")


def create_trace(event_id: str, body: TraceBody) -> IngestionEvent:
    return IngestionEvent_TraceCreate(id=event_id, timestamp=utc_timestamp(), body=body)


def create_generation(event_id: str, body: CreateGenerationBody) -> IngestionEvent:
    return IngestionEvent_GenerationCreate(id=event_id, timestamp=utc_timestamp(), body=body)


def update_generation(event_id: str, body: UpdateGenerationBody) -> IngestionEvent:
    return IngestionEvent_GenerationUpdate(id=event_id, timestamp=utc_timestamp(), body=body)


def create_span(event_id: str, body: CreateSpanBody) -> IngestionEvent:
    return IngestionEvent_SpanCreate(id=event_id, timestamp=utc_timestamp(), body=body)


def update_span(event_id: str, body: UpdateSpanBody) -> IngestionEvent:
    return IngestionEvent_SpanUpdate(id=event_id, timestamp=utc_timestamp(), body=body)


def create_score(event_id: str, body: ScoreBody) -> IngestionEvent:
    return IngestionEvent_ScoreCreate(id=event_id, timestamp=utc_timestamp(), body=body)


def create_event(event_id: str, body: CreateEventBody) -> IngestionEvent:
    return IngestionEvent_EventCreate(id=event_id, timestamp=utc_timestamp(), body=body)
