"""OpenAI provider.

Calls the OpenAI chat completions API through LiteLLM and maps its errors
onto the shared taxonomy.
"""

from __future__ import annotations

import time
from collections.abc import Mapping
from datetime import UTC, datetime
from decimal import Decimal
from typing import Any

import litellm
import structlog

from coda.core.config import Settings

from ..base import APIKeyFunc, ClientConfig, LLMClient
from ..errors import ErrorKind, LLMError, kind_for_status
from ..models import LLMModel, ModelCapabilities, ModelPricing, Provider
from ..registry import ProviderRegistry
from ..schemas import (
    CompleteParams,
    CompleteResponse,
    CompletionMetadata,
    FunctionCall,
    Message,
    Role,
    Usage,
)

logger = structlog.get_logger()

# https://platform.openai.com/docs/models
MODEL_GPT_4O = LLMModel(
    provider=Provider.OPENAI,
    name="gpt-4o",
    display_name="OpenAI gpt-4o",
    max_tokens=16384,
    context_window=128_000,
    pdf_supported=True,
    version="2023-05-15",
    family="GPT-4",
    pricing=ModelPricing(
        input_per_token=Decimal("0.00001"),
        output_per_token=Decimal("0.00003"),
    ),
    capabilities=ModelCapabilities(
        supports_streaming=True,
        supports_functions=True,
        supports_vision=True,
        supports_json=True,
    ),
)

# Error codes returned by the OpenAI API
ERR_CODE_CONTEXT_LENGTH_EXCEEDED = "context_length_exceeded"
ERR_CODE_LENGTH = "length"
ERR_CODE_INVALID_API_KEY = "invalid_api_key"
ERR_CODE_RATE_LIMIT_EXCEEDED = "rate_limit_exceeded"
ERR_CODE_INSUFFICIENT_QUOTA = "insufficient_quota"

ERROR_CODE_KINDS: dict[str, ErrorKind] = {
    ERR_CODE_CONTEXT_LENGTH_EXCEEDED: ErrorKind.CONTEXT_LENGTH_EXCEEDED,
    ERR_CODE_LENGTH: ErrorKind.TOKEN_LIMIT_REACHED,
    ERR_CODE_INVALID_API_KEY: ErrorKind.INVALID_API_KEY,
    ERR_CODE_RATE_LIMIT_EXCEEDED: ErrorKind.RATE_LIMITED,
    ERR_CODE_INSUFFICIENT_QUOTA: ErrorKind.INSUFFICIENT_QUOTA,
}


def _get(obj: Any, key: str, default: Any = None) -> Any:
    """Read a field from a plain dict or a LiteLLM response object."""
    if obj is None:
        return default
    if isinstance(obj, Mapping):
        return obj.get(key, default)
    return getattr(obj, key, default)


def _error_code(exc: Exception) -> str | None:
    code = getattr(exc, "code", None)
    if isinstance(code, str) and code:
        return code

    # LiteLLM folds the OpenAI error body into the message
    text = str(exc)
    for known in ERROR_CODE_KINDS:
        if "_" in known and known in text:
            return known
    return None


class OpenAIClient(LLMClient):
    """OpenAI chat completion client."""

    provider = Provider.OPENAI

    def __init__(self, config: ClientConfig) -> None:
        super().__init__(config)
        self.api_key = config.api_key_func()
        if not self.api_key:
            raise self.error(ErrorKind.MISSING_API_KEY)
        self.api_base = config.settings.openai.base_url

    @classmethod
    def is_configured(cls, settings: Settings) -> bool:
        # Cloud API, identified by its key alone
        return True

    @classmethod
    def api_key_func(cls, settings: Settings) -> APIKeyFunc:
        return lambda: settings.openai.api_key

    def _convert_messages(self, messages: list[Message]) -> list[dict[str, Any]]:
        converted: list[dict[str, Any]] = []
        for message in messages:
            try:
                role = Role(message.role)
            except ValueError:
                raise self.unsupported_role(message.role) from None

            match role:
                case Role.SYSTEM | Role.USER | Role.ASSISTANT:
                    converted.append({"role": role.value, "content": message.content})
                case Role.FUNCTION:
                    # Function results are passed back as user messages
                    converted.append(
                        {
                            "role": Role.USER.value,
                            "content": f"Function {message.name} returned: {message.content}",
                        }
                    )
        return converted

    def _build_request(self, params: CompleteParams) -> dict[str, Any]:
        request: dict[str, Any] = {
            "model": self.model.name,
            "custom_llm_provider": self.provider.value,
            "messages": self._convert_messages(params.messages),
            "seed": 1,  # For reproducibility
            "api_key": self.api_key,
            "timeout": self.config.timeout,
        }

        if params.max_tokens is not None:
            request["max_tokens"] = params.max_tokens

        if params.temperature is not None:
            request["temperature"] = params.temperature

        if params.top_p is not None:
            request["top_p"] = params.top_p

        if params.n is not None:
            request["n"] = params.n

        if params.functions:
            request["tools"] = [
                {"type": "function", "function": f.model_dump(exclude_none=True)}
                for f in params.functions
            ]

        if params.json_mode:
            request["response_format"] = {"type": "json_object"}

        if self.api_base:
            request["api_base"] = self.api_base

        return request

    async def complete(self, params: CompleteParams) -> CompleteResponse:
        """Call the chat completions API.

        Args:
            params: Completion request

        Returns:
            Completion response with one message per choice

        Raises:
            LLMError: On unsupported roles, API failures or empty responses
        """
        start = time.perf_counter()
        request = self._build_request(params)

        logger.info(
            "llm_openai_request",
            model=self.model.name,
            message_count=len(request["messages"]),
        )

        try:
            response = await litellm.acompletion(**request)
        except Exception as e:
            raise self._handle_error(e) from e

        choices = _get(response, "choices") or []
        if not choices:
            raise self.error(ErrorKind.NO_MESSAGES)

        messages = [self._convert_choice(choice) for choice in choices]

        usage = None
        raw_usage = _get(response, "usage")
        if raw_usage is not None:
            usage = Usage(
                prompt_tokens=_get(raw_usage, "prompt_tokens", 0) or 0,
                completion_tokens=_get(raw_usage, "completion_tokens", 0) or 0,
                total_tokens=_get(raw_usage, "total_tokens", 0) or 0,
            )

        return CompleteResponse(
            messages=messages,
            usage=usage,
            metadata=CompletionMetadata(
                model_name=self.model.name,
                finish_reason=_get(choices[0], "finish_reason"),
                completion_id=_get(response, "id"),
                latency_ms=int((time.perf_counter() - start) * 1000),
                processed_at=datetime.now(UTC),
                request_tokens=usage.prompt_tokens if usage else None,
            ),
        )

    def _convert_choice(self, choice: Any) -> Message:
        raw = _get(choice, "message") or {}

        try:
            role = Role(_get(raw, "role") or Role.ASSISTANT)
        except ValueError:
            role = Role.ASSISTANT

        function_call = None
        tool_calls = _get(raw, "tool_calls") or []
        if tool_calls:
            function = _get(tool_calls[0], "function")
            function_call = FunctionCall(
                name=_get(function, "name") or "",
                arguments=_get(function, "arguments") or "",
            )

        return Message(
            role=role,
            content=_get(raw, "content") or "",
            function_call=function_call,
            finish_reason=_get(choice, "finish_reason"),
            completed=True,
        )

    def _handle_error(self, exc: Exception) -> LLMError:
        """Convert LiteLLM/OpenAI errors to our error types."""
        message = getattr(exc, "message", None) or str(exc)

        if isinstance(exc, (litellm.Timeout, TimeoutError)):
            return self.error(ErrorKind.TIMEOUT, error_message=message)

        status_code = getattr(exc, "status_code", None)
        if isinstance(exc, litellm.APIConnectionError) or not isinstance(status_code, int):
            # No answer from the backend
            return self.error(ErrorKind.UNKNOWN, error_message=message)

        code = _error_code(exc)
        details: dict[str, Any] = {
            "status_code": status_code,
            "error_code": code,
            "error_message": message,
        }

        if code in ERROR_CODE_KINDS:
            return self.error(ERROR_CODE_KINDS[code], **details)

        if isinstance(exc, litellm.ContextWindowExceededError):
            return self.error(ErrorKind.CONTEXT_LENGTH_EXCEEDED, **details)

        if isinstance(exc, litellm.ContentPolicyViolationError):
            return self.error(ErrorKind.CONTENT_FILTERED, **details)

        kind = kind_for_status(status_code)
        if kind is not None:
            return self.error(kind, **details)

        if status_code == 404:
            return self.error(ErrorKind.MODEL_NOT_FOUND, **details)

        if status_code == 400:
            return self.error(ErrorKind.INVALID_ARGUMENTS, **details)

        return self.error(ErrorKind.UNKNOWN, **details)


def register(registry: ProviderRegistry) -> None:
    """Register OpenAI models."""
    registry.register(OpenAIClient, [MODEL_GPT_4O])
