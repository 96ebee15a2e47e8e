"""
Pytest configuration and fixtures
"""

import pytest

from coda.core.config import (
    AppSettings,
    CompleterSettings,
    LangfuseSettings,
    OllamaSettings,
    OpenAISettings,
    Settings,
)


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch):
    """Keep provider credentials from the host environment out of tests"""
    for name in (
        "OPENAI_API_KEY",
        "OPENAI_BASE_URL",
        "OLLAMA_BASE_URL",
        "LANGFUSE_PUBLIC_KEY",
        "LANGFUSE_PRIVATE_KEY",
        "LANGFUSE_HOST",
        "CODA_ENVIRONMENT",
        "CODA_LOG_FORMAT",
        "CODA_LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def settings() -> Settings:
    """Settings with OpenAI and Ollama configured, Langfuse disabled"""
    return Settings(
        app=AppSettings(environment="test", _env_file=None),
        openai=OpenAISettings(api_key="sk-test-key", _env_file=None),
        ollama=OllamaSettings(base_url="http://ollama.test:11434", _env_file=None),
        langfuse=LangfuseSettings(_env_file=None),
        completer=CompleterSettings(_env_file=None),
    )


@pytest.fixture
def bare_settings() -> Settings:
    """Settings with no provider configured"""
    return Settings(
        app=AppSettings(environment="test", _env_file=None),
        openai=OpenAISettings(_env_file=None),
        ollama=OllamaSettings(_env_file=None),
        langfuse=LangfuseSettings(_env_file=None),
        completer=CompleterSettings(_env_file=None),
    )
