"""Unit tests for the Langfuse ingestion client."""

from __future__ import annotations

import asyncio
import base64
import json

import httpx
import pytest
from langfuse.api import TraceBody

from coda.core.config import LangfuseSettings
from coda.tracing.client import DEFAULT_API_URL, IngestionError, LangfuseClient
from coda.tracing.events import create_trace


def make_client(handler, host: str = "https://langfuse.test/") -> LangfuseClient:
    return LangfuseClient(
        "pk-test",
        "sk-test",
        host=host,
        transport=httpx.MockTransport(handler),
    )


@pytest.fixture
def batch():
    return [create_trace("event-1", TraceBody(id="trace-1", name="Model Interaction"))]


class TestFromSettings:
    """Tests for LangfuseClient.from_settings."""

    def test_none_without_keys(self) -> None:
        """Returns None when Langfuse is not configured."""
        assert LangfuseClient.from_settings(LangfuseSettings(_env_file=None)) is None

    def test_builds_client(self) -> None:
        """Copies keys, host and timeout."""
        settings = LangfuseSettings(
            public_key="pk",
            private_key="sk",
            host="https://self-hosted.test",
            timeout=3.0,
            _env_file=None,
        )

        client = LangfuseClient.from_settings(settings)

        assert client is not None
        assert client.enabled is True
        assert client.host == "https://self-hosted.test"
        assert client.timeout == 3.0

    def test_default_host(self) -> None:
        """Defaults to Langfuse cloud."""
        assert LangfuseClient("pk", "sk").host == DEFAULT_API_URL


class TestIngest:
    """Tests for LangfuseClient.ingest."""

    @pytest.mark.asyncio
    async def test_posts_batch(self, batch) -> None:
        """Posts the batch with Basic auth."""
        requests: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200, json={"successes": [{"id": "event-1", "status": 201}], "errors": []})

        client = make_client(handler)
        result = await client.ingest(batch, metadata={"sdk": "coda"})

        request = requests[0]
        assert request.method == "POST"
        assert str(request.url) == "https://langfuse.test/api/public/ingestion"
        expected = base64.b64encode(b"pk-test:sk-test").decode()
        assert request.headers["authorization"] == f"Basic {expected}"

        body = json.loads(request.content)
        assert body["metadata"] == {"sdk": "coda"}
        assert body["batch"][0]["id"] == "event-1"
        assert body["batch"][0]["type"] == "trace-create"
        assert body["batch"][0]["body"] == {"id": "trace-1", "name": "Model Interaction"}

        assert [s.id for s in result.successes] == ["event-1"]
        assert result.errors == []

    @pytest.mark.asyncio
    async def test_multi_status_returns_errors(self, batch) -> None:
        """207 is a success with per-event errors."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                207,
                json={"successes": [], "errors": [{"id": "event-1", "status": 400, "message": "bad"}]},
            )

        result = await make_client(handler).ingest(batch)

        assert result.errors[0].id == "event-1"
        assert result.errors[0].status == 400

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [400, 401, 500, 503])
    async def test_unexpected_status(self, batch, status: int) -> None:
        """Any other status raises IngestionError."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(status, text="nope")

        with pytest.raises(IngestionError) as exc_info:
            await make_client(handler).ingest(batch)

        assert exc_info.value.status_code == status
        assert str(status) in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_transport_error(self, batch) -> None:
        """Network failures raise IngestionError."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(IngestionError) as exc_info:
            await make_client(handler).ingest(batch)

        assert exc_info.value.status_code is None
        assert isinstance(exc_info.value.__cause__, httpx.ConnectError)

    @pytest.mark.asyncio
    async def test_undecodable_response(self, batch) -> None:
        """A non-JSON body raises IngestionError."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text="ok")

        with pytest.raises(IngestionError, match="error decoding response") as exc_info:
            await make_client(handler).ingest(batch)

        assert exc_info.value.status_code == 200

    @pytest.mark.asyncio
    async def test_malformed_response(self, batch) -> None:
        """A JSON body without the result lists raises IngestionError."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"unexpected": True})

        with pytest.raises(IngestionError, match="error decoding response"):
            await make_client(handler).ingest(batch)

    @pytest.mark.asyncio
    async def test_omits_metadata_when_unset(self, batch) -> None:
        """The batch is sent without a metadata key by default."""
        bodies: list[dict] = []

        def handler(request: httpx.Request) -> httpx.Response:
            bodies.append(json.loads(request.content))
            return httpx.Response(200, json={"successes": [], "errors": []})

        await make_client(handler).ingest(batch)

        assert "metadata" not in bodies[0]
        assert bodies[0]["batch"][0]["timestamp"].endswith("Z")

    def test_sequential_event_loops(self, batch) -> None:
        """One client delivers batches from successive event loops."""
        calls: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request.url.path)
            return httpx.Response(200, json={"successes": [{"id": "event-1", "status": 201}], "errors": []})

        client = make_client(handler)

        first = asyncio.run(client.ingest(batch))
        second = asyncio.run(client.ingest(batch))

        assert [s.id for s in first.successes] == ["event-1"]
        assert [s.id for s in second.successes] == ["event-1"]
        assert calls == ["/api/public/ingestion", "/api/public/ingestion"]
