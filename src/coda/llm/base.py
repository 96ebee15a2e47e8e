"""Abstract base class for LLM provider clients."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass
from typing import ClassVar

import httpx

from coda.core.config import Settings

from .errors import ErrorKind, LLMError
from .models import LLMModel, Provider
from .schemas import CompleteParams, CompleteResponse

APIKeyFunc = Callable[[], str]


def empty_api_key() -> str:
    return ""


@dataclass(frozen=True)
class ClientConfig:
    """Snapshot a provider client is built from."""

    model: LLMModel
    api_key_func: APIKeyFunc
    settings: Settings
    timeout: float = 120.0
    transport: httpx.AsyncBaseTransport | None = None  # Override for plain-HTTP providers


class LLMClient(ABC):
    """Base class for provider clients.

    Subclasses bind one :class:`Provider` to its capability set: whether it is
    configured, how its API key is resolved, and how a completion is executed.
    Clients are created per call and hold no mutable state.
    """

    provider: ClassVar[Provider]

    def __init__(self, config: ClientConfig) -> None:
        self.config = config

    @property
    def model(self) -> LLMModel:
        return self.config.model

    @classmethod
    @abstractmethod
    def is_configured(cls, settings: Settings) -> bool:
        """Check whether the provider can be used with these settings."""

    @classmethod
    def api_key_func(cls, settings: Settings) -> APIKeyFunc:
        """Return an accessor for the provider's API key."""
        return empty_api_key

    @abstractmethod
    async def complete(self, params: CompleteParams) -> CompleteResponse:
        """Execute one completion call.

        Args:
            params: Completion request

        Returns:
            Normalized completion response

        Raises:
            LLMError: Any failure, translated into the shared taxonomy
        """

    def error(self, kind: ErrorKind, **kwargs: object) -> LLMError:
        """Build an LLMError tagged with this client's provider and model."""
        return LLMError(
            kind,
            provider=self.provider.value,
            model=self.model.name,
            **kwargs,  # type: ignore[arg-type]
        )

    def unsupported_role(self, role: object) -> LLMError:
        return self.error(ErrorKind.UNSUPPORTED_ROLE, error_message=f"unsupported role: {role}")
