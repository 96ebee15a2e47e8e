"""Code review service.

Validates review input, builds the prompt and drives the completer.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import UTC, datetime
from typing import Any
from uuid import uuid4

import structlog
from pydantic import BaseModel, Field, field_validator

from coda.llm.completer import Completer
from coda.llm.errors import ErrorKind, LLMError
from coda.llm.models import LLMModel
from coda.llm.providers.openai import MODEL_GPT_4O
from coda.llm.schemas import CompleteParams, Message

from .prompts import Level, build_review_prompt

logger = structlog.get_logger()

MAX_CODE_LENGTH = 50_000
DEFAULT_LANGUAGE = "python"

MESSAGE_NO_CODE = "No code was provided."
MESSAGE_INPUT_TOO_LONG = "Input is too long. Shorten it and try again."
MESSAGE_SERVICE_UNAVAILABLE = "The AI service is unavailable. Please try again later."
MESSAGE_TOO_MANY_REQUESTS = "Too many requests. Please try again later."
MESSAGE_GENERIC = "An error occurred."

_INPUT_TOO_LONG_KINDS = frozenset({ErrorKind.CONTEXT_LENGTH_EXCEEDED, ErrorKind.TOKEN_LIMIT_REACHED})
_UNAVAILABLE_KINDS = frozenset({ErrorKind.SERVICE_UNAVAILABLE, ErrorKind.MODEL_OVERLOADED})
_THROTTLED_KINDS = frozenset({ErrorKind.TOO_MANY_REQUESTS, ErrorKind.RATE_LIMITED})


class ReviewInputError(ValueError):
    """Submitted code cannot be reviewed."""


class ReviewRequest(BaseModel):
    """A code review submission.

    Blank values fall back to defaults and unknown levels to ``medium``.
    """

    code: str
    language: str = DEFAULT_LANGUAGE
    detail_level: Level = "medium"
    strictness: Level = "medium"
    model: str | None = Field(default=None, description="Display name of the model to use")

    @field_validator("language", mode="before")
    @classmethod
    def default_language(cls, v: Any) -> Any:
        if v is None or (isinstance(v, str) and not v.strip()):
            return DEFAULT_LANGUAGE
        return v

    @field_validator("detail_level", "strictness", mode="before")
    @classmethod
    def default_level(cls, v: Any) -> Any:
        if v not in ("low", "medium", "high"):
            return "medium"
        return v

    @field_validator("model", mode="before")
    @classmethod
    def blank_model(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v


class Review(BaseModel):
    """A completed code review."""

    id: str = Field(default_factory=lambda: str(uuid4()))
    code: str
    language: str
    detail_level: str
    strictness: str
    result: str
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class ReviewService:
    """Runs code reviews through the completer."""

    def __init__(
        self,
        completer: Completer,
        default_model: LLMModel = MODEL_GPT_4O,
        fallback_models: Sequence[LLMModel] = (),
    ) -> None:
        """Initialize the service.

        Args:
            completer: Completer used for every review
            default_model: Model used when the request names none or an unknown one
            fallback_models: Models tried, in order, when the selected model fails
        """
        self.completer = completer
        self.default_model = default_model
        self.fallback_models = tuple(fallback_models)

    def available_model_names(self) -> list[str]:
        """Display names of the models a request may select."""
        return [model.display_name for model in self.completer.get_available_models()]

    def select_model(self, display_name: str | None) -> LLMModel:
        """Pick an available model by display name, or the default model."""
        if display_name:
            for model in self.completer.get_available_models():
                if model.display_name == display_name:
                    return model

        logger.info(
            "review_default_model",
            requested=display_name,
            model=self.default_model.name,
        )
        return self.default_model

    async def review(self, request: ReviewRequest) -> Review:
        """Review the submitted code.

        Args:
            request: Review submission

        Returns:
            The review built from the first response message

        Raises:
            ReviewInputError: Code is empty or too long
            LLMError: Every model failed
        """
        if not request.code:
            raise ReviewInputError(MESSAGE_NO_CODE)
        if len(request.code) > MAX_CODE_LENGTH:
            raise ReviewInputError(MESSAGE_INPUT_TOO_LONG)

        model = self.select_model(request.model)
        fallbacks = [m for m in self.fallback_models if m != model]

        params = CompleteParams(
            messages=[
                Message.system(
                    build_review_prompt(request.language, request.detail_level, request.strictness)
                ),
                Message.user(request.code),
            ]
        )

        logger.info(
            "review_requested",
            model=model.name,
            language=request.language,
            detail_level=request.detail_level,
            strictness=request.strictness,
            code_length=len(request.code),
        )

        response = await self.completer.complete_with_fallback(params, model, *fallbacks)

        return Review(
            code=request.code,
            language=request.language,
            detail_level=request.detail_level,
            strictness=request.strictness,
            result=response.messages[0].content,
        )


def user_message_for_error(exc: BaseException) -> str:
    """Convert a review failure into a message safe to show to users.

    Args:
        exc: Error raised by :meth:`ReviewService.review`

    Returns:
        User-facing message
    """
    if isinstance(exc, ReviewInputError):
        return str(exc)

    if isinstance(exc, LLMError):
        if exc.kind in _INPUT_TOO_LONG_KINDS:
            return MESSAGE_INPUT_TOO_LONG
        if exc.kind in _UNAVAILABLE_KINDS:
            return MESSAGE_SERVICE_UNAVAILABLE
        if exc.kind in _THROTTLED_KINDS:
            return MESSAGE_TOO_MANY_REQUESTS

    logger.error("review_failed", error=str(exc), error_type=type(exc).__name__)
    return MESSAGE_GENERIC
