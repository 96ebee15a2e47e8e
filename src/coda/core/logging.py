"""Structured logging setup."""

import logging
from typing import Any

import structlog
from structlog.typing import EventDict, Processor

from .config import AppSettings


def rename_for_cloud_run(_: Any, __: str, event_dict: EventDict) -> EventDict:
    """Rename keys so Cloud Logging picks up message and severity."""
    if "event" in event_dict:
        event_dict["message"] = event_dict.pop("event")
    if "level" in event_dict:
        event_dict["severity"] = event_dict.pop("level").upper()
    return event_dict


def configure_logging(settings: AppSettings) -> None:
    """Configure structlog for the application.

    Args:
        settings: Application settings carrying log format and level
    """
    level = logging.getLevelNamesMapping().get(settings.log_level.upper(), logging.INFO)

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if settings.log_format == "text":
        processors.append(structlog.dev.ConsoleRenderer())
    else:
        processors.append(rename_for_cloud_run)
        processors.append(structlog.processors.JSONRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=False,
    )
