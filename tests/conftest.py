"""Shared test fixtures for all test modules."""

import json
from collections.abc import Callable, Coroutine
from typing import Any

import httpx
import pytest

from mintexport.adapters.ingest.in_memory import InMemoryIngest
from mintexport.core.config import Capabilities, ExporterConfig
from mintexport.core.exporter import MintExporter

# ASGI type aliases
Scope = dict[str, Any]
Receive = Callable[[], Coroutine[Any, Any, dict[str, Any]]]
Send = Callable[[dict[str, Any]], Coroutine[Any, Any, None]]


@pytest.fixture
def ingest() -> InMemoryIngest:
    """Provide an in-memory ingest that accepts every request."""
    return InMemoryIngest()


@pytest.fixture
def config() -> ExporterConfig:
    """Provide a configuration pointing at a test endpoint with a token."""
    return ExporterConfig(endpoint="http://ingest.test/api/v2/metrics/ingest", api_token="token")


@pytest.fixture
def exporter(config: ExporterConfig, ingest: InMemoryIngest) -> MintExporter:
    """Provide an exporter wired to the in-memory ingest."""
    return MintExporter(config, ingest)


@pytest.fixture
def small_batch_config() -> Callable[[int], ExporterConfig]:
    """Factory fixture for configurations with a custom line limit."""

    def _config(max_lines: int) -> ExporterConfig:
        return ExporterConfig(
            endpoint="http://ingest.test/api/v2/metrics/ingest",
            api_token="token",
            capabilities=Capabilities(max_lines_per_request=max_lines),
        )

    return _config


# === ASGI ingest stub ===


class IngestStub:
    """ASGI app that imitates the ingest endpoint.

    Records each request and answers with scripted statuses (default 202)
    and a JSON acknowledgment counting the received lines.
    """

    def __init__(self, statuses: list[int] | None = None) -> None:
        self.statuses = list(statuses or [])
        self.requests: list[dict[str, Any]] = []

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        body = b""
        more_body = True
        while more_body:
            message = await receive()
            body += message.get("body", b"")
            more_body = message.get("more_body", False)

        headers = {k.decode(): v.decode() for k, v in scope.get("headers", [])}
        self.requests.append(
            {"method": scope["method"], "path": scope["path"], "headers": headers, "body": body}
        )

        status = self.statuses.pop(0) if self.statuses else 202
        lines = body.decode().split("\n") if body else []
        if status in (200, 202):
            ack = {"linesOk": len(lines), "linesInvalid": 0, "error": None}
        else:
            ack = {"linesOk": 0, "linesInvalid": 0, "error": f"status {status}"}
        payload = json.dumps(ack).encode()
        await send(
            {
                "type": "http.response.start",
                "status": status,
                "headers": [(b"content-type", b"application/json")],
            }
        )
        await send({"type": "http.response.body", "body": payload})


@pytest.fixture
def ingest_stub() -> IngestStub:
    """Provide a fresh ASGI ingest stub."""
    return IngestStub()


@pytest.fixture
def asgi_transport():
    """Factory fixture that wraps an ASGI app in an httpx transport."""

    def _transport(app):
        return httpx.ASGITransport(app=app)

    return _transport
