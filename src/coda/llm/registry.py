"""Model registry.

Provider modules register their models with a :class:`ProviderRegistry`
during startup; :meth:`ProviderRegistry.build` then snapshots the models that
are usable with the current settings into a :class:`ModelRegistry`.
"""

from __future__ import annotations

import threading
from collections.abc import Iterable, Iterator

import structlog

from coda.core.config import Settings

from .base import LLMClient
from .models import LLMModel, Provider

logger = structlog.get_logger()


class ProviderRegistry:
    """Registration handle mapping models to the client class that serves them."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._factories: dict[LLMModel, type[LLMClient]] = {}

    def register(self, factory: type[LLMClient], models: Iterable[LLMModel]) -> None:
        """Associate models with a client factory.

        Args:
            factory: LLMClient subclass able to serve the models
            models: Model descriptors to register

        Raises:
            ValueError: If a model's provider does not match the factory's
        """
        models = list(models)
        for model in models:
            if model.provider != factory.provider:
                raise ValueError(
                    f"Model '{model.name}' belongs to {model.provider}, "
                    f"not {factory.provider}"
                )

        with self._lock:
            for model in models:
                self._factories[model] = factory

        logger.debug(
            "llm_models_registered",
            provider=factory.provider.value,
            models=[m.name for m in models],
        )

    def factory_for(self, model: LLMModel) -> type[LLMClient] | None:
        with self._lock:
            return self._factories.get(model)

    def factory_for_provider(self, provider: Provider) -> type[LLMClient] | None:
        """Find the client class registered for a provider."""
        with self._lock:
            for factory in self._factories.values():
                if factory.provider == provider:
                    return factory
        return None

    def build(self, settings: Settings) -> ModelRegistry:
        """Snapshot the models whose provider is configured.

        Models of unconfigured providers are silently left out.

        Args:
            settings: Application settings

        Returns:
            Registry of usable models, in registration order
        """
        with self._lock:
            entries = list(self._factories.items())

        models = [model for model, factory in entries if factory.is_configured(settings)]

        logger.info(
            "model_registry_built",
            available=[m.name for m in models],
            registered_count=len(entries),
        )
        return ModelRegistry(models)


class ModelRegistry:
    """Immutable set of models currently usable."""

    def __init__(self, models: Iterable[LLMModel]) -> None:
        self._models = tuple(models)

    @property
    def models(self) -> tuple[LLMModel, ...]:
        return self._models

    def get(self, name: str) -> LLMModel | None:
        """Get model by API name."""
        for model in self._models:
            if model.name == name:
                return model
        return None

    def find_by_display_name(self, display_name: str) -> LLMModel | None:
        for model in self._models:
            if model.display_name == display_name:
                return model
        return None

    def __contains__(self, model: object) -> bool:
        return model in self._models

    def __iter__(self) -> Iterator[LLMModel]:
        return iter(self._models)

    def __len__(self) -> int:
        return len(self._models)
