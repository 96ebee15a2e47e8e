"""Code review on top of the completion layer."""

from .prompts import build_review_prompt
from .service import (
    MAX_CODE_LENGTH,
    Review,
    ReviewInputError,
    ReviewRequest,
    ReviewService,
    user_message_for_error,
)

__all__ = [
    "MAX_CODE_LENGTH",
    "Review",
    "ReviewInputError",
    "ReviewRequest",
    "ReviewService",
    "build_review_prompt",
    "user_message_for_error",
]
