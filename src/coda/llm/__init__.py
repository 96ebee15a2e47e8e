"""LLM completion layer.

Provider-agnostic completion over OpenAI (through LiteLLM) and Ollama, with
retry, ordered fallback and background Langfuse telemetry.
"""

from .base import ClientConfig, LLMClient
from .completer import (
    DEFAULT_RETRY_CONFIG,
    Completer,
    RetryConfig,
    build_completer,
    current_user_id,
)
from .errors import (
    AllAttemptsFailedError,
    AllModelsFailedError,
    ErrorKind,
    LLMError,
    is_retryable,
)
from .models import LLMModel, ModelCapabilities, ModelPricing, Provider
from .registry import ModelRegistry, ProviderRegistry
from .schemas import (
    CompleteParams,
    CompleteResponse,
    CompletionMetadata,
    FunctionCall,
    FunctionDefinition,
    Message,
    Role,
    Usage,
)

__all__ = [
    # Completer
    "Completer",
    "RetryConfig",
    "DEFAULT_RETRY_CONFIG",
    "build_completer",
    "current_user_id",
    # Clients
    "ClientConfig",
    "LLMClient",
    # Registry
    "ModelRegistry",
    "ProviderRegistry",
    # Models
    "LLMModel",
    "ModelCapabilities",
    "ModelPricing",
    "Provider",
    # Errors
    "AllAttemptsFailedError",
    "AllModelsFailedError",
    "ErrorKind",
    "LLMError",
    "is_retryable",
    # Schemas
    "CompleteParams",
    "CompleteResponse",
    "CompletionMetadata",
    "FunctionCall",
    "FunctionDefinition",
    "Message",
    "Role",
    "Usage",
]
