"""Settings tests."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from coda.core.config import (
    AppSettings,
    CompleterSettings,
    LangfuseSettings,
    OllamaSettings,
    OpenAISettings,
    Settings,
    get_settings,
)


class TestAppSettings:
    """Tests for AppSettings."""

    def test_defaults(self) -> None:
        """Defaults to local environment with JSON logs."""
        settings = AppSettings(_env_file=None)

        assert settings.environment == "local"
        assert settings.log_format == "json"
        assert settings.log_level == "INFO"
        assert settings.is_production is False

    def test_reads_prefixed_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Reads CODA_ prefixed variables."""
        monkeypatch.setenv("CODA_ENVIRONMENT", "production")
        monkeypatch.setenv("CODA_LOG_FORMAT", "text")

        settings = AppSettings(_env_file=None)

        assert settings.environment == "production"
        assert settings.log_format == "text"
        assert settings.is_production is True

    def test_rejects_unknown_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Rejects environments outside the allowed set."""
        monkeypatch.setenv("CODA_ENVIRONMENT", "staging")

        with pytest.raises(ValidationError):
            AppSettings(_env_file=None)


class TestProviderSettings:
    """Tests for provider settings groups."""

    def test_openai_reads_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Reads the OpenAI key and base URL."""
        monkeypatch.setenv("OPENAI_API_KEY", "sk-env")
        monkeypatch.setenv("OPENAI_BASE_URL", "https://gateway.test/v1")

        settings = OpenAISettings(_env_file=None)

        assert settings.api_key == "sk-env"
        assert settings.base_url == "https://gateway.test/v1"

    def test_ollama_not_configured_by_default(self) -> None:
        """Ollama needs a base URL."""
        assert OllamaSettings(_env_file=None).is_configured is False
        assert OllamaSettings(base_url="http://localhost:11434", _env_file=None).is_configured

    def test_langfuse_needs_both_keys(self) -> None:
        """Langfuse is configured only with both keys."""
        assert LangfuseSettings(public_key="pk", _env_file=None).is_configured is False
        assert LangfuseSettings(private_key="sk", _env_file=None).is_configured is False
        assert LangfuseSettings(public_key="pk", private_key="sk", _env_file=None).is_configured

    def test_langfuse_default_host(self) -> None:
        """Defaults to Langfuse cloud."""
        assert LangfuseSettings(_env_file=None).host == "https://cloud.langfuse.com"


class TestCompleterSettings:
    """Tests for CompleterSettings."""

    def test_defaults(self) -> None:
        """Uses the documented retry and timeout defaults."""
        settings = CompleterSettings(_env_file=None)

        assert settings.request_timeout == 120.0
        assert settings.telemetry_timeout == 5.0
        assert settings.max_attempts == 3
        assert settings.initial_wait == 0.5
        assert settings.max_wait == 5.0
        assert settings.backoff_factor == 1.5
        assert settings.max_pending_telemetry == 64

    def test_reads_llm_prefix(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Reads LLM_ prefixed variables."""
        monkeypatch.setenv("LLM_MAX_ATTEMPTS", "5")

        assert CompleterSettings(_env_file=None).max_attempts == 5

    def test_rejects_zero_attempts(self) -> None:
        """At least one attempt is required."""
        with pytest.raises(ValidationError):
            CompleterSettings(max_attempts=0, _env_file=None)


class TestGetSettings:
    """Tests for get_settings."""

    def test_cached(self) -> None:
        """Returns the same instance on every call."""
        get_settings.cache_clear()
        try:
            assert get_settings() is get_settings()
            assert isinstance(get_settings(), Settings)
        finally:
            get_settings.cache_clear()
