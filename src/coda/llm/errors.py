"""LLM error taxonomy.

Provider clients translate every backend failure into :class:`LLMError`;
callers only ever inspect :class:`ErrorKind`.
"""

from __future__ import annotations

from collections.abc import Sequence
from enum import Enum


class ErrorKind(str, Enum):
    """Kinds of LLM failures."""

    # Input
    INVALID_ARGUMENTS = "invalid arguments"
    UNSUPPORTED_ROLE = "unsupported role"
    UNSUPPORTED_PROVIDER = "unsupported provider"
    MISSING_API_KEY = "missing API key"

    # Content and limits
    TOKEN_LIMIT_REACHED = "token limit reached"
    CONTEXT_LENGTH_EXCEEDED = "context length exceeded"
    NO_MESSAGES = "no messages returned"
    CONTENT_FILTERED = "content filtered by safety system"
    CONTENT_NOT_ALLOWED = "content not allowed"
    INSUFFICIENT_QUOTA = "insufficient quota"

    # Authentication
    INVALID_API_KEY = "invalid API key"
    AUTHENTICATION_FAILED = "authentication failed"

    # Service
    SERVICE_UNAVAILABLE = "service unavailable"
    TOO_MANY_REQUESTS = "too many requests"
    TIMEOUT = "request timed out"
    RATE_LIMITED = "rate limited"

    # Model
    MODEL_NOT_FOUND = "model not found"
    MODEL_OVERLOADED = "model is currently overloaded"

    # Function calling
    INVALID_FUNCTION_CALL = "invalid function call"
    FUNCTION_NOT_FOUND = "function not found"

    INTERNAL = "internal error"
    UNKNOWN = "unknown LLM error"


TRANSIENT_KINDS = frozenset(
    {
        ErrorKind.SERVICE_UNAVAILABLE,
        ErrorKind.TOO_MANY_REQUESTS,
        ErrorKind.TIMEOUT,
        ErrorKind.RATE_LIMITED,
        ErrorKind.MODEL_OVERLOADED,
    }
)


class LLMError(Exception):
    """Structured error from an LLM operation.

    Attributes:
        kind: Error kind from the shared taxonomy
        provider: Provider that produced the error
        model: Model that produced the error
        status_code: HTTP status code, if the backend answered
        error_code: Provider-specific error code
        error_message: Detailed provider error message
        request_id: Provider-specific request ID
        retryable: Whether re-attempting the call may succeed
    """

    def __init__(
        self,
        kind: ErrorKind,
        *,
        provider: str | None = None,
        model: str | None = None,
        status_code: int | None = None,
        error_code: str | None = None,
        error_message: str | None = None,
        request_id: str | None = None,
        retryable: bool | None = None,
    ) -> None:
        self.kind = kind
        self.provider = provider
        self.model = model
        self.status_code = status_code
        self.error_code = error_code
        self.error_message = error_message
        self.request_id = request_id
        self.retryable = kind in TRANSIENT_KINDS if retryable is None else retryable
        super().__init__(self._render())

    def _render(self) -> str:
        base = self.kind.value
        if self.provider:
            base = f"[{self.provider}] {base}"
        if self.error_code:
            base = f"{base} (code: {self.error_code})"
        return base

    def __str__(self) -> str:
        return self._render()


class AllAttemptsFailedError(LLMError):
    """Every attempt against a single model failed.

    Mirrors the last attempt's error so callers can keep branching on ``kind``.
    """

    def __init__(self, last_error: LLMError, attempts: int) -> None:
        super().__init__(
            last_error.kind,
            provider=last_error.provider,
            model=last_error.model,
            status_code=last_error.status_code,
            error_code=last_error.error_code,
            error_message=last_error.error_message,
            request_id=last_error.request_id,
            retryable=last_error.retryable,
        )
        self.last_error = last_error
        self.attempts = attempts

    def _render(self) -> str:
        return f"all completion attempts failed: {super()._render()}"


class AllModelsFailedError(LLMError):
    """The primary model and every fallback failed."""

    def __init__(self, failures: Sequence[tuple[str, LLMError]]) -> None:
        if not failures:
            raise ValueError("failures must not be empty")
        _, last_error = failures[-1]
        self.failures = list(failures)
        self.last_error = last_error
        super().__init__(
            last_error.kind,
            provider=last_error.provider,
            model=last_error.model,
            status_code=last_error.status_code,
            error_code=last_error.error_code,
            error_message=last_error.error_message,
            request_id=last_error.request_id,
            retryable=last_error.retryable,
        )

    def _render(self) -> str:
        return f"all models failed: {super()._render()}"


def is_retryable(err: BaseException) -> bool:
    """Check whether an error is worth retrying.

    An explicit ``retryable`` flag on :class:`LLMError` wins; plain timeouts
    are retryable too.
    """
    if isinstance(err, LLMError):
        return err.retryable
    return isinstance(err, TimeoutError)


def kind_for_status(status_code: int) -> ErrorKind | None:
    """Map an HTTP status code onto the shared taxonomy.

    Returns None when the status carries no specific meaning.
    """
    if 500 <= status_code < 600:
        return ErrorKind.SERVICE_UNAVAILABLE
    if status_code == 429:
        return ErrorKind.TOO_MANY_REQUESTS
    if status_code in (401, 403):
        return ErrorKind.AUTHENTICATION_FAILED
    return None
