"""Application-wide configuration and logging."""

from .config import (
    AppSettings,
    CompleterSettings,
    LangfuseSettings,
    OllamaSettings,
    OpenAISettings,
    Settings,
    get_settings,
)
from .logging import configure_logging

__all__ = [
    "AppSettings",
    "CompleterSettings",
    "LangfuseSettings",
    "OllamaSettings",
    "OpenAISettings",
    "Settings",
    "configure_logging",
    "get_settings",
]
