"""LLM model definitions.

Defines the Provider enum and the immutable LLMModel descriptor.
Concrete models are declared by the provider modules under
``coda.llm.providers``.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum


class Provider(str, Enum):
    """Backend services capable of producing completions."""

    OPENAI = "openai"
    OLLAMA = "ollama"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class ModelCapabilities:
    """Features a model supports."""

    supports_streaming: bool = False
    supports_functions: bool = False
    supports_vision: bool = False
    supports_json: bool = False


@dataclass(frozen=True)
class ModelPricing:
    """Per-token pricing."""

    input_per_token: Decimal
    output_per_token: Decimal
    currency: str = "USD"

    def cost(self, input_tokens: int, output_tokens: int) -> Decimal:
        """Calculate cost for the given token usage."""
        return (
            Decimal(input_tokens) * self.input_per_token
            + Decimal(output_tokens) * self.output_per_token
        )


@dataclass(frozen=True)
class LLMModel:
    """Immutable model descriptor.

    Hashable, so it doubles as the provider registry key.
    """

    provider: Provider
    name: str  # Model name for API calls
    display_name: str
    max_tokens: int
    context_window: int
    pdf_supported: bool = False
    version: str = ""
    family: str = ""
    pricing: ModelPricing | None = None
    capabilities: ModelCapabilities = field(default_factory=ModelCapabilities)
