"""Provider clients.

Each provider module exposes a ``register(registry)`` hook that adds its
models to a :class:`~coda.llm.registry.ProviderRegistry`.
"""

from coda.llm.registry import ProviderRegistry

from . import ollama, openai
from .ollama import MODEL_TINY_SWALLOW, OllamaClient
from .openai import MODEL_GPT_4O, OpenAIClient

PROVIDER_MODULES = (openai, ollama)


def default_provider_registry() -> ProviderRegistry:
    """Create a registry with every built-in provider registered."""
    registry = ProviderRegistry()
    for module in PROVIDER_MODULES:
        module.register(registry)
    return registry


__all__ = [
    "MODEL_GPT_4O",
    "MODEL_TINY_SWALLOW",
    "OllamaClient",
    "OpenAIClient",
    "PROVIDER_MODULES",
    "default_provider_registry",
]
