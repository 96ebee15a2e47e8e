"""Completion telemetry.

Turns one successful completion into a linked trace + generation pair.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from datetime import UTC, timedelta
from typing import TYPE_CHECKING, Any
from uuid import uuid4

from langfuse.api import CreateGenerationBody, IngestionEvent, TraceBody

from .events import create_generation, create_trace

if TYPE_CHECKING:
    from coda.llm.models import LLMModel
    from coda.llm.schemas import CompleteParams, CompleteResponse, Message

DEFAULT_TEMPERATURE = 0.7
DEFAULT_MAX_TOKENS = 2000
DEFAULT_TOP_P = 1.0


def _new_id() -> str:
    return str(uuid4())


def last_user_message(messages: Sequence[Message]) -> str:
    """Content of the most recent user message, or an empty string."""
    for message in reversed(messages):
        if message.role == "user":
            return message.content
    return ""


def extract_model_parameters(params: CompleteParams) -> dict[str, Any]:
    """Model parameters actually used, with defaults for unset values."""
    return {
        "temperature": params.temperature if params.temperature is not None else DEFAULT_TEMPERATURE,
        "maxTokens": params.max_tokens if params.max_tokens is not None else DEFAULT_MAX_TOKENS,
        "topP": params.top_p if params.top_p is not None else DEFAULT_TOP_P,
    }


def _map_values(parameters: dict[str, Any]) -> dict[str, Any]:
    # Langfuse map values are strings, integers, booleans or string lists
    return {key: str(value) if isinstance(value, float) else value for key, value in parameters.items()}


def _dump_messages(messages: Sequence[Message]) -> list[dict[str, Any]]:
    return [m.model_dump(mode="json", exclude_none=True) for m in messages]


def build_completion_batch(
    model: LLMModel,
    params: CompleteParams,
    response: CompleteResponse,
    environment: str,
    user_id: str | None = None,
    id_factory: Callable[[], str] = _new_id,
) -> list[IngestionEvent]:
    """Build the trace and generation events for a completion.

    Args:
        model: Model that served the completion
        params: Request that was sent
        response: Response that came back
        environment: Environment name reported to Langfuse
        user_id: Caller identity; a random ID is used when unknown
        id_factory: ID generator

    Returns:
        ``[trace, generation]`` sharing one trace ID
    """
    trace_id = id_factory()
    generation_id = id_factory()

    end = response.metadata.processed_at.astimezone(UTC)
    start = end - timedelta(milliseconds=response.metadata.latency_ms)

    usage_details = None
    cost_details = None
    if response.usage is not None:
        usage_details = {
            "prompt_tokens": response.usage.prompt_tokens,
            "completion_tokens": response.usage.completion_tokens,
            "total_tokens": response.usage.total_tokens,
        }
        if model.pricing is not None:
            input_cost = response.usage.prompt_tokens * model.pricing.input_per_token
            output_cost = response.usage.completion_tokens * model.pricing.output_per_token
            cost_details = {
                "input": float(input_cost),
                "output": float(output_cost),
                "total": float(input_cost + output_cost),
            }

    generation = CreateGenerationBody(
        id=generation_id,
        trace_id=trace_id,
        name="Model Response",
        start_time=start,
        end_time=end,
        model=model.name,
        model_parameters=_map_values(extract_model_parameters(params)),
        input=_dump_messages(params.messages),
        output=_dump_messages(response.messages),
        level="DEFAULT",
        usage_details=usage_details,
        cost_details=cost_details,
        environment=environment,
    )

    trace = TraceBody(
        id=trace_id,
        name="Model Interaction",
        user_id=user_id or id_factory(),
        input=last_user_message(params.messages),
        output=response.messages[0].content if response.messages else None,
        timestamp=start,
        environment=environment,
        tags=[model.name, model.provider.value],
    )

    return [
        create_trace(id_factory(), trace),
        create_generation(id_factory(), generation),
    ]
