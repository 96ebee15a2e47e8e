"""Application configuration using Pydantic Settings.

Every group reads its own environment prefix (and an optional ``.env`` file),
so the LLM layer can be configured without a config file on disk.
"""

from functools import lru_cache
from typing import Literal

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

Environment = Literal["test", "local", "development", "production"]


class AppSettings(BaseSettings):
    """Global application settings."""

    environment: Environment = Field(
        default="local",
        description="Environment type (test, local, development, production)",
    )
    log_format: Literal["json", "text"] = Field(
        default="json",
        description="Log renderer",
    )
    log_level: str = Field(default="INFO", description="Minimum log level")

    model_config = SettingsConfigDict(
        env_prefix="CODA_",
        env_file=".env",
        extra="ignore",
    )

    @property
    def is_production(self) -> bool:
        return self.environment == "production"


class OpenAISettings(BaseSettings):
    """OpenAI API client settings."""

    api_key: str = Field(default="", description="OpenAI API key")
    base_url: str | None = Field(
        default=None,
        description="Custom API base URL for OpenAI-compatible gateways",
    )

    model_config = SettingsConfigDict(
        env_prefix="OPENAI_",
        env_file=".env",
        extra="ignore",
    )


class OllamaSettings(BaseSettings):
    """Ollama server settings."""

    base_url: str = Field(default="", description="Ollama API base URL")

    model_config = SettingsConfigDict(
        env_prefix="OLLAMA_",
        env_file=".env",
        extra="ignore",
    )

    @property
    def is_configured(self) -> bool:
        return self.base_url != ""


class LangfuseSettings(BaseSettings):
    """Langfuse observability settings."""

    public_key: str = Field(default="", description="Langfuse public key")
    private_key: str = Field(default="", description="Langfuse private key")
    host: str = Field(
        default="https://cloud.langfuse.com",
        description="Langfuse API URL (override for self-hosted instances)",
    )
    timeout: float = Field(default=10.0, gt=0, description="HTTP timeout in seconds")

    model_config = SettingsConfigDict(
        env_prefix="LANGFUSE_",
        env_file=".env",
        extra="ignore",
    )

    @property
    def is_configured(self) -> bool:
        return self.public_key != "" and self.private_key != ""


class CompleterSettings(BaseSettings):
    """Retry, timeout and telemetry knobs for the completer."""

    request_timeout: float = Field(default=120.0, gt=0, description="Per-call provider timeout")
    telemetry_timeout: float = Field(default=5.0, gt=0, description="Telemetry send timeout")
    max_attempts: int = Field(default=3, ge=1, description="Attempts per model")
    initial_wait: float = Field(default=0.5, ge=0, description="Wait before the first retry")
    max_wait: float = Field(default=5.0, ge=0, description="Upper bound for retry waits")
    backoff_factor: float = Field(default=1.5, ge=1, description="Exponential backoff factor")
    max_pending_telemetry: int = Field(
        default=64,
        ge=1,
        description="Telemetry tasks allowed in flight before events are dropped",
    )

    model_config = SettingsConfigDict(
        env_prefix="LLM_",
        env_file=".env",
        extra="ignore",
    )


class Settings(BaseModel):
    """Complete application configuration."""

    app: AppSettings = Field(default_factory=AppSettings)
    openai: OpenAISettings = Field(default_factory=OpenAISettings)
    ollama: OllamaSettings = Field(default_factory=OllamaSettings)
    langfuse: LangfuseSettings = Field(default_factory=LangfuseSettings)
    completer: CompleterSettings = Field(default_factory=CompleterSettings)


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()
