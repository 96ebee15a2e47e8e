"""Completer.

Runs a completion against one model with retry and exponential backoff,
falls back across models, and ships a Langfuse trace in the background.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from contextvars import ContextVar
from dataclasses import dataclass

import httpx
import structlog
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from coda.core.config import CompleterSettings, Settings, get_settings
from coda.tracing.client import LangfuseClient
from coda.tracing.telemetry import build_completion_batch

from .base import ClientConfig, LLMClient
from .errors import AllAttemptsFailedError, AllModelsFailedError, ErrorKind, LLMError, is_retryable
from .models import LLMModel
from .registry import ModelRegistry, ProviderRegistry
from .schemas import CompleteParams, CompleteResponse

logger = structlog.get_logger()

# Caller identity attached to telemetry traces
current_user_id: ContextVar[str | None] = ContextVar("current_user_id", default=None)


@dataclass(frozen=True)
class RetryConfig:
    """Retry policy shared by every call of a completer."""

    max_attempts: int = 3  # Attempts per model, first one included
    initial_wait: float = 0.5  # Seconds before the first retry
    max_wait: float = 5.0  # Upper bound for any wait
    factor: float = 1.5  # Exponential backoff factor

    @classmethod
    def from_settings(cls, settings: CompleterSettings) -> RetryConfig:
        return cls(
            max_attempts=settings.max_attempts,
            initial_wait=settings.initial_wait,
            max_wait=settings.max_wait,
            factor=settings.backoff_factor,
        )


DEFAULT_RETRY_CONFIG = RetryConfig()


class Completer:
    """Completes prompts using different models with retry and fallback logic."""

    def __init__(
        self,
        settings: Settings,
        registry: ModelRegistry,
        providers: ProviderRegistry,
        *,
        retry_config: RetryConfig = DEFAULT_RETRY_CONFIG,
        langfuse: LangfuseClient | None = None,
        request_timeout: float = 120.0,
        telemetry_timeout: float = 5.0,
        max_pending_telemetry: int = 64,
        transport: httpx.AsyncBaseTransport | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        """Initialize the completer.

        Args:
            settings: Application settings handed to provider clients
            registry: Snapshot of usable models
            providers: Provider registry used to build clients
            retry_config: Retry policy
            langfuse: Telemetry sink; telemetry is skipped when None
            request_timeout: Per-call provider timeout in seconds
            telemetry_timeout: Timeout for one telemetry send in seconds
            max_pending_telemetry: In-flight telemetry sends before events are dropped
            transport: HTTP transport override for plain-HTTP providers
            sleep: Backoff sleep function
        """
        self.settings = settings
        self.retry_config = retry_config
        self._registry = registry
        self._providers = providers
        self._langfuse = langfuse
        self._request_timeout = request_timeout
        self._telemetry_timeout = telemetry_timeout
        self._max_pending_telemetry = max_pending_telemetry
        self._transport = transport
        self._sleep = sleep
        self._telemetry_tasks: set[asyncio.Task[None]] = set()

    def get_available_models(self) -> tuple[LLMModel, ...]:
        """Return the models available for completion."""
        return self._registry.models

    def _new_client(self, model: LLMModel) -> LLMClient:
        factory = self._providers.factory_for(model) or self._providers.factory_for_provider(
            model.provider
        )
        if factory is None:
            raise LLMError(
                ErrorKind.UNSUPPORTED_PROVIDER,
                provider=str(model.provider),
                model=model.name,
                error_message=f"provider {model.provider} is not supported",
            )

        return factory(
            ClientConfig(
                model=model,
                api_key_func=factory.api_key_func(self.settings),
                settings=self.settings,
                timeout=self._request_timeout,
                transport=self._transport,
            )
        )

    def _retrying(self, model: LLMModel) -> AsyncRetrying:
        rc = self.retry_config

        def log_retry(retry_state: RetryCallState) -> None:
            error = retry_state.outcome.exception() if retry_state.outcome else None
            logger.info(
                "llm_retrying",
                attempt=retry_state.attempt_number + 1,
                model=model.name,
                wait=retry_state.next_action.sleep if retry_state.next_action else None,
                previous_error=str(error),
            )

        return AsyncRetrying(
            stop=stop_after_attempt(rc.max_attempts),
            wait=wait_exponential(multiplier=rc.initial_wait, exp_base=rc.factor, max=rc.max_wait),
            retry=retry_if_exception(is_retryable),
            before_sleep=log_retry,
            sleep=self._sleep,
            reraise=True,
        )

    async def complete(self, params: CompleteParams, model: LLMModel) -> CompleteResponse:
        """Complete the conversation with retry logic.

        Attempts run strictly one after another. Cancelling the calling task
        aborts the active attempt or the pending backoff wait.

        Args:
            params: Completion request
            model: Model to use

        Returns:
            Completion response with at least one message

        Raises:
            LLMError: Unsupported provider, missing API key or no messages
            AllAttemptsFailedError: The last attempt's error once retries stop
        """
        client = self._new_client(model)

        logger.info(
            "llm_complete_start",
            model=model.name,
            provider=model.provider.value,
            message_count=len(params.messages),
        )

        attempts = 0
        try:
            async for attempt in self._retrying(model):
                with attempt:
                    attempts = attempt.retry_state.attempt_number
                    response = await client.complete(params)
        except LLMError as e:
            logger.warning(
                "llm_complete_failed",
                model=model.name,
                attempts=attempts,
                error=str(e),
            )
            raise AllAttemptsFailedError(e, attempts) from e
        except TimeoutError as e:
            timeout_error = LLMError(
                ErrorKind.TIMEOUT,
                provider=model.provider.value,
                model=model.name,
            )
            raise AllAttemptsFailedError(timeout_error, attempts) from e

        if not response.messages:
            raise LLMError(ErrorKind.NO_MESSAGES, provider=model.provider.value, model=model.name)

        logger.info(
            "llm_complete_success",
            model=model.name,
            attempts=attempts,
            latency_ms=response.metadata.latency_ms,
        )

        self._schedule_telemetry(model, params, response)
        return response

    async def complete_with_fallback(
        self,
        params: CompleteParams,
        primary_model: LLMModel,
        *fallback_models: LLMModel,
    ) -> CompleteResponse:
        """Complete using the primary model, falling back in the given order.

        Every model gets a fresh retry budget.

        Args:
            params: Completion request
            primary_model: Model tried first
            *fallback_models: Models tried, in order, after the primary fails

        Returns:
            The first successful response

        Raises:
            AllModelsFailedError: Every model failed; mirrors the last error
        """
        failures: list[tuple[str, LLMError]] = []

        for index, model in enumerate((primary_model, *fallback_models)):
            if index > 0:
                logger.info(
                    "llm_fallback_attempt",
                    fallback_model=model.name,
                    fallback_index=index,
                )

            try:
                return await self.complete(params, model)
            except LLMError as e:
                failures.append((model.name, e))
                logger.warning(
                    "llm_model_failed",
                    model=model.name,
                    is_primary=index == 0,
                    error=str(e),
                )

        raise AllModelsFailedError(failures) from failures[-1][1]

    def _schedule_telemetry(
        self,
        model: LLMModel,
        params: CompleteParams,
        response: CompleteResponse,
    ) -> None:
        """Send trace events without blocking the caller."""
        langfuse = self._langfuse
        if langfuse is None:
            return

        if len(self._telemetry_tasks) >= self._max_pending_telemetry:
            logger.warning(
                "telemetry_dropped",
                model=model.name,
                pending=len(self._telemetry_tasks),
            )
            return

        # Runs outside the caller's task so caller cancellation does not reach it
        task = asyncio.create_task(self._send_trace_events(langfuse, model, params, response))
        self._telemetry_tasks.add(task)
        task.add_done_callback(self._telemetry_tasks.discard)

    async def _send_trace_events(
        self,
        langfuse: LangfuseClient,
        model: LLMModel,
        params: CompleteParams,
        response: CompleteResponse,
    ) -> None:
        try:
            batch = build_completion_batch(
                model,
                params,
                response,
                environment="production" if self.settings.app.is_production else "development",
                user_id=current_user_id.get(),
            )
            result = await asyncio.wait_for(
                langfuse.ingest(batch),
                timeout=self._telemetry_timeout,
            )
        except Exception as e:
            logger.error(
                "telemetry_send_failed",
                model=model.name,
                error=str(e) or type(e).__name__,
            )
            return

        if result.errors:
            logger.error(
                "telemetry_partial_failure",
                model=model.name,
                errors=[failure.dict(exclude_none=True) for failure in result.errors],
            )

    async def drain_telemetry(self) -> None:
        """Wait for in-flight telemetry sends to finish."""
        if self._telemetry_tasks:
            await asyncio.gather(*self._telemetry_tasks, return_exceptions=True)

    async def aclose(self) -> None:
        """Flush telemetry before shutdown."""
        await self.drain_telemetry()


def build_completer(settings: Settings | None = None) -> Completer:
    """Wire a completer from settings with every built-in provider.

    Args:
        settings: Application settings; loaded from the environment when None

    Returns:
        Ready-to-use completer
    """
    from .providers import default_provider_registry

    if settings is None:
        settings = get_settings()
    providers = default_provider_registry()

    return Completer(
        settings,
        providers.build(settings),
        providers,
        retry_config=RetryConfig.from_settings(settings.completer),
        langfuse=LangfuseClient.from_settings(settings.langfuse),
        request_timeout=settings.completer.request_timeout,
        telemetry_timeout=settings.completer.telemetry_timeout,
        max_pending_telemetry=settings.completer.max_pending_telemetry,
    )
