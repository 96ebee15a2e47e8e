"""Langfuse ingestion client.

Thin wrapper over the Langfuse API client's ingestion endpoint. Each send
opens its own HTTP client so the wrapper can be shared across event loops.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

import httpx
import structlog
from langfuse.api import IngestionEvent, IngestionResponse
from langfuse.api.client import AsyncFernLangfuse
from langfuse.api.core import ApiError

from coda.core.config import LangfuseSettings

logger = structlog.get_logger()

DEFAULT_API_URL = "https://cloud.langfuse.com"


class IngestionError(Exception):
    """Raised when a batch could not be delivered."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class LangfuseClient:
    """Async sink for the Langfuse ingestion API.

    Attributes:
        host: Langfuse API URL
        timeout: HTTP timeout in seconds
    """

    def __init__(
        self,
        public_key: str,
        secret_key: str,
        host: str = DEFAULT_API_URL,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            public_key: Langfuse public key (Basic auth username)
            secret_key: Langfuse secret key (Basic auth password)
            host: Langfuse API URL, override for self-hosted instances
            timeout: HTTP timeout in seconds
            transport: Optional httpx transport (used in tests)
        """
        self._public_key = public_key
        self._secret_key = secret_key
        self.host = host.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    @classmethod
    def from_settings(cls, settings: LangfuseSettings) -> LangfuseClient | None:
        """Create a client, or None when Langfuse is not configured."""
        if not settings.is_configured:
            return None
        return cls(
            public_key=settings.public_key,
            secret_key=settings.private_key,
            host=settings.host,
            timeout=settings.timeout,
        )

    @property
    def enabled(self) -> bool:
        return bool(self._public_key) and bool(self._secret_key)

    async def ingest(
        self,
        batch: Sequence[IngestionEvent],
        metadata: Any = None,
    ) -> IngestionResponse:
        """Send a batch of events.

        Any 2xx status, 207 (multi-status) included, counts as delivered;
        per-event failures are reported in the returned response.

        Args:
            batch: Events to send
            metadata: Optional batch metadata

        Returns:
            Per-event successes and errors

        Raises:
            IngestionError: On transport failure, unexpected status or an
                undecodable response
        """
        extra: dict[str, Any] = {}
        if metadata is not None:
            extra["metadata"] = metadata

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as http:
                api = AsyncFernLangfuse(
                    base_url=self.host,
                    username=self._public_key,
                    password=self._secret_key,
                    timeout=self.timeout,
                    httpx_client=http,
                )
                result = await api.ingestion.batch(batch=list(batch), **extra)
        except ApiError as e:
            status_code = e.status_code
            if status_code is not None and 200 <= status_code < 300:
                raise IngestionError(f"error decoding response: {e.body}", status_code) from e
            raise IngestionError(f"unexpected status code: {status_code}", status_code) from e
        except httpx.HTTPError as e:
            raise IngestionError(f"error sending request: {e}") from e
        except ValueError as e:
            raise IngestionError(f"error decoding response: {e}") from e
        except RuntimeError as e:
            raise IngestionError(f"error sending request: {e}") from e

        logger.debug(
            "langfuse_batch_ingested",
            event_count=len(batch),
            success_count=len(result.successes),
            error_count=len(result.errors),
        )
        return result
