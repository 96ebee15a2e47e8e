"""Ollama provider.

Talks to a locally hosted Ollama server over its native ``/api/chat``
endpoint with a non-streaming request.
"""

from __future__ import annotations

import time
from datetime import UTC, datetime
from decimal import Decimal
from typing import Any

import httpx
import structlog

from coda.core.config import Settings

from ..base import ClientConfig, LLMClient
from ..errors import ErrorKind, LLMError, kind_for_status
from ..models import LLMModel, ModelCapabilities, ModelPricing, Provider
from ..registry import ProviderRegistry
from ..schemas import CompleteParams, CompleteResponse, CompletionMetadata, Message, Role, Usage

logger = structlog.get_logger()

MODEL_TINY_SWALLOW = LLMModel(
    provider=Provider.OLLAMA,
    name="yottahmd/tiny-swallow-1.5b-instruct",
    display_name="Sakana AI Tiny Swallow 1.5B",
    max_tokens=32768,
    context_window=32768,
    pdf_supported=True,
    version="2024-03-05",
    family="SakanaAI",
    pricing=ModelPricing(
        input_per_token=Decimal("0"),
        output_per_token=Decimal("0"),
    ),
    capabilities=ModelCapabilities(supports_streaming=True),
)

WIRE_ROLES = {
    Role.SYSTEM: "system",
    Role.USER: "user",
    Role.ASSISTANT: "assistant",
}


def _llm_role(ollama_role: str | None) -> Role:
    for role, wire in WIRE_ROLES.items():
        if wire == ollama_role:
            return role
    return Role.FUNCTION


class OllamaClient(LLMClient):
    """Ollama chat client."""

    provider = Provider.OLLAMA

    def __init__(self, config: ClientConfig) -> None:
        super().__init__(config)
        self.base_url = config.settings.ollama.base_url.rstrip("/")

    @classmethod
    def is_configured(cls, settings: Settings) -> bool:
        return settings.ollama.is_configured

    def _convert_messages(self, messages: list[Message]) -> list[dict[str, str]]:
        converted = []
        for message in messages:
            try:
                wire_role = WIRE_ROLES[Role(message.role)]
            except (KeyError, ValueError):
                # Function messages have no Ollama counterpart
                raise self.unsupported_role(message.role) from None
            converted.append({"role": wire_role, "content": message.content})
        return converted

    def _build_request(self, params: CompleteParams) -> dict[str, Any]:
        options: dict[str, Any] = {}
        if params.temperature is not None:
            options["temperature"] = params.temperature
        if params.top_p is not None:
            options["top_p"] = params.top_p
        if params.max_tokens is not None:
            options["num_predict"] = params.max_tokens

        request: dict[str, Any] = {
            "model": self.model.name,
            "messages": self._convert_messages(params.messages),
            "stream": False,
        }
        if options:
            request["options"] = options
        if params.json_mode:
            request["format"] = "json"
        return request

    async def complete(self, params: CompleteParams) -> CompleteResponse:
        """Call the Ollama chat endpoint.

        Args:
            params: Completion request

        Returns:
            Completion response with the single reply message

        Raises:
            LLMError: On unsupported roles, HTTP failures, malformed or empty replies
        """
        start = time.perf_counter()
        request = self._build_request(params)

        logger.info(
            "llm_ollama_request",
            model=self.model.name,
            base_url=self.base_url,
            message_count=len(request["messages"]),
        )

        try:
            async with httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.config.timeout,
                transport=self.config.transport,
            ) as client:
                response = await client.post("/api/chat", json=request)
                response.raise_for_status()
                body = response.json()
        except httpx.HTTPStatusError as e:
            raise self._handle_status_error(e.response) from e
        except httpx.TimeoutException as e:
            raise self.error(ErrorKind.TIMEOUT, error_message=str(e)) from e
        except (httpx.HTTPError, ValueError) as e:
            # Network or decode failure
            logger.error("llm_ollama_request_failed", model=self.model.name, error=str(e))
            raise self.error(ErrorKind.UNKNOWN, error_message=str(e)) from e

        reply = body.get("message") if isinstance(body, dict) else None
        if not reply:
            raise self.error(ErrorKind.NO_MESSAGES)

        try:
            if not isinstance(reply, dict):
                raise TypeError(f"message is {type(reply).__name__}, not an object")

            done_reason = body.get("done_reason")
            messages = [
                Message(
                    role=_llm_role(reply.get("role")),
                    content=reply.get("content") or "",
                    finish_reason=done_reason,
                    completed=True,
                )
            ]

            usage = None
            if "prompt_eval_count" in body or "eval_count" in body:
                prompt_tokens = body.get("prompt_eval_count") or 0
                completion_tokens = body.get("eval_count") or 0
                usage = Usage(
                    prompt_tokens=prompt_tokens,
                    completion_tokens=completion_tokens,
                    total_tokens=prompt_tokens + completion_tokens,
                )
        except (TypeError, ValueError, AttributeError) as e:
            # Malformed reply body
            logger.error("llm_ollama_response_invalid", model=self.model.name, error=str(e))
            raise self.error(ErrorKind.UNKNOWN, error_message=f"invalid response: {e}") from e

        return CompleteResponse(
            messages=messages,
            usage=usage,
            metadata=CompletionMetadata(
                model_name=self.model.name,
                finish_reason=done_reason,
                latency_ms=int((time.perf_counter() - start) * 1000),
                processed_at=datetime.now(UTC),
                request_tokens=usage.prompt_tokens if usage else None,
            ),
        )

    def _handle_status_error(self, response: httpx.Response) -> LLMError:
        """Convert Ollama status errors to our error types."""
        error_message: str | None
        try:
            error_message = response.json().get("error")
        except (ValueError, AttributeError):
            error_message = response.text or None

        details: dict[str, Any] = {
            "status_code": response.status_code,
            "error_code": f"{response.status_code} {response.reason_phrase}".strip(),
            "error_message": error_message,
        }

        kind = kind_for_status(response.status_code)
        if kind is not None:
            return self.error(kind, **details)

        if response.status_code == 404:
            return self.error(ErrorKind.MODEL_NOT_FOUND, **details)

        if response.status_code == 400:
            return self.error(ErrorKind.INVALID_ARGUMENTS, **details)

        return self.error(ErrorKind.UNKNOWN, **details)


def register(registry: ProviderRegistry) -> None:
    """Register Ollama models."""
    registry.register(OllamaClient, [MODEL_TINY_SWALLOW])
