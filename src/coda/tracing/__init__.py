"""Langfuse tracing module for LLM observability.

Ships completion traces to the Langfuse ingestion API on a best-effort basis.
"""

from coda.tracing.client import IngestionError, LangfuseClient
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
from coda.tracing.telemetry import (
    build_completion_batch,
    extract_model_parameters,
    last_user_message,
)

__all__ = [
    "IngestionError",
    "LangfuseClient",
    "build_completion_batch",
    "create_event",
    "create_generation",
    "create_score",
    "create_span",
    "create_trace",
    "extract_model_parameters",
    "last_user_message",
    "update_generation",
    "update_span",
    "utc_timestamp",
]
