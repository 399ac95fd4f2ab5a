"""Shared test fixtures for mcp-conformance tests.

This module provides:
- served: RecordingEngine sessions on a real local listener
- reference_url: endpoint of the reference MCP server
- RecordingEngine: minimal protocol engine for transport tests
"""

import logging
from collections.abc import AsyncGenerator, Callable
from typing import Any, Optional

import httpx
import pytest
import structlog
from fixtures.reference_server import create_reference_server

from mcp_conformance.errors import EngineDisposedError
from mcp_conformance.transport.adapter import DEFAULT_PATH, build_app
from mcp_conformance.transport.lifecycle import ServerLifecycle
from mcp_conformance.transport.session import SessionRegistry, SessionTransport

# =============================================================================
# Recording engine - records traffic, echoes each request method back
# =============================================================================


class RecordingEngine:
    """Protocol engine that echoes requests and records its lifecycle."""

    def __init__(self, reject_initialize: bool = False):
        self.reject_initialize = reject_initialize
        self.transport: Optional[SessionTransport] = None
        self.messages: list[dict[str, Any]] = []
        self.disposed = False

    def bind(self, transport: SessionTransport) -> None:
        self.transport = transport

    async def handle_message(self, message: dict[str, Any]) -> Optional[dict[str, Any]]:
        if self.disposed:
            raise EngineDisposedError()
        self.messages.append(message)
        if "id" not in message or "method" not in message:
            return None
        if message["method"] == "initialize" and self.reject_initialize:
            return {
                "jsonrpc": "2.0",
                "id": message["id"],
                "error": {"code": -32602, "message": "Unsupported protocol version"},
            }
        return {"jsonrpc": "2.0", "id": message["id"], "result": {"echo": message["method"]}}

    async def dispose(self) -> None:
        self.disposed = True


def initialize_request(request_id: int = 1) -> dict[str, Any]:
    return {
        "jsonrpc": "2.0",
        "id": request_id,
        "method": "initialize",
        "params": {
            "protocolVersion": "2025-06-18",
            "capabilities": {},
            "clientInfo": {"name": "test-client", "version": "1.0.0"},
        },
    }


@pytest.fixture
def restore_logging():
    """Undo configure_logging() after tests that call it."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)
    structlog.reset_defaults()


@pytest.fixture
def engines() -> list[RecordingEngine]:
    """Every RecordingEngine created by the recording_factory fixture."""
    return []


@pytest.fixture
def recording_factory(engines: list[RecordingEngine]) -> Callable[[], RecordingEngine]:
    def factory() -> RecordingEngine:
        engine = RecordingEngine()
        engines.append(engine)
        return engine

    return factory


# =============================================================================
# Live listeners
# =============================================================================


class ServedEndpoint:
    """A registry served on an ephemeral port."""

    def __init__(self, engine_factory: Callable[[], Any], keepalive_interval: float = 15.0):
        self.registry = SessionRegistry(engine_factory, keepalive_interval=keepalive_interval)
        self.lifecycle = ServerLifecycle()
        self.requests: list[tuple[str, Any]] = []
        self.url: Optional[str] = None

    def _observe(self, method: str, headers: Any, body: Any) -> None:
        self.requests.append((method, body))

    async def start(self) -> str:
        base_url = await self.lifecycle.start(build_app(self.registry, on_request=self._observe))
        self.url = f"{base_url}{DEFAULT_PATH}"
        return self.url

    async def stop(self) -> None:
        await self.registry.close()
        await self.lifecycle.stop()


@pytest.fixture
async def served(recording_factory) -> AsyncGenerator[ServedEndpoint, None]:
    """RecordingEngine sessions served on a real listener."""
    endpoint = ServedEndpoint(recording_factory)
    await endpoint.start()
    yield endpoint
    await endpoint.stop()


@pytest.fixture
async def serve_reference() -> AsyncGenerator[Callable[..., Any], None]:
    """Factory serving reference servers built with custom options."""
    endpoints: list[ServedEndpoint] = []

    async def _serve(**options: Any) -> str:
        endpoint = ServedEndpoint(lambda: create_reference_server(**options))
        endpoints.append(endpoint)
        return await endpoint.start()

    yield _serve
    for endpoint in endpoints:
        await endpoint.stop()


@pytest.fixture
async def reference_url(serve_reference) -> str:
    """Endpoint URL of a default reference server."""
    return await serve_reference()


@pytest.fixture
async def http_client() -> AsyncGenerator[httpx.AsyncClient, None]:
    async with httpx.AsyncClient(timeout=10.0) as client:
        yield client
