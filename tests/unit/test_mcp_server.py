"""Unit tests for McpServer - the reference protocol engine.

Test IDs: UT-M001 to UT-M014
"""

import asyncio
from typing import Any

import pytest
from fixtures.reference_server import create_reference_server

from mcp_conformance.errors import EngineDisposedError, ProtocolError
from mcp_conformance.protocol.server import McpServer

pytestmark = [pytest.mark.unit]


class FakeTransport:
    """Transport handle that records pushed messages."""

    def __init__(self, has_stream: bool = True):
        self.session_id = "test-session"
        self.has_stream = has_stream
        self.pushed: list[dict[str, Any]] = []

    async def push(self, message: dict[str, Any]) -> bool:
        if not self.has_stream:
            return False
        self.pushed.append(message)
        return True


def request(method: str, params: dict[str, Any] | None = None, request_id: int = 1) -> dict[str, Any]:
    message: dict[str, Any] = {"jsonrpc": "2.0", "id": request_id, "method": method}
    if params is not None:
        message["params"] = params
    return message


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def server(transport) -> McpServer:
    server = create_reference_server()
    server.bind(transport)
    return server


class TestDispatch:
    """Tests for JSON-RPC dispatch."""

    async def test_ut_m001_initialize(self, server):
        """UT-M001: initialize returns version, capabilities and serverInfo."""
        response = await server.handle_message(
            request("initialize", {"protocolVersion": "2025-06-18", "clientInfo": {"name": "c"}})
        )

        result = response["result"]
        assert result["protocolVersion"] == "2025-06-18"
        assert result["serverInfo"] == {"name": "reference-server", "version": "1.0.0"}
        assert {"tools", "prompts", "logging", "completions"} <= set(result["capabilities"])
        assert server.client_params["clientInfo"] == {"name": "c"}

    async def test_ut_m002_unsupported_version_falls_back(self, server):
        """UT-M002: Unknown protocol versions are answered with the latest one."""
        response = await server.handle_message(request("initialize", {"protocolVersion": "1999-01-01"}))
        assert response["result"]["protocolVersion"] == "2025-06-18"

    async def test_ut_m003_on_initialize_hook(self, transport):
        """UT-M003: on_initialize sees the client's params."""
        seen = []
        server = McpServer("hooked")
        server.on_initialize = seen.append
        server.bind(transport)

        await server.handle_message(request("initialize", {"protocolVersion": "2025-06-18"}))

        assert seen == [{"protocolVersion": "2025-06-18"}]

    async def test_ut_m004_unknown_method(self, server):
        """UT-M004: Unknown methods get -32601."""
        response = await server.handle_message(request("resources/list"))
        assert response["error"]["code"] == -32601

    async def test_ut_m005_notification_returns_none(self, server):
        """UT-M005: Notifications never get a response."""
        assert await server.handle_message({"jsonrpc": "2.0", "method": "notifications/initialized"}) is None

    async def test_ut_m006_tools_list(self, server):
        """UT-M006: tools/list exposes registered tools."""
        response = await server.handle_message(request("tools/list"))

        names = [tool["name"] for tool in response["result"]["tools"]]
        assert "test_simple_text" in names
        assert all("inputSchema" in tool for tool in response["result"]["tools"])

    async def test_ut_m007_unknown_tool(self, server):
        """UT-M007: Calling an unknown tool is a JSON-RPC error."""
        response = await server.handle_message(request("tools/call", {"name": "nope"}))
        assert response["error"]["code"] == -32602

    async def test_ut_m008_tool_exception_is_error_result(self, server):
        """UT-M008: Tool exceptions become isError results."""
        response = await server.handle_message(request("tools/call", {"name": "test_error_handling"}))

        assert response["result"]["isError"] is True
        assert "intentionally" in response["result"]["content"][0]["text"]

    async def test_ut_m009_set_level_requires_level(self, server):
        """UT-M009: logging/setLevel validates its params."""
        ok = await server.handle_message(request("logging/setLevel", {"level": "debug"}))
        bad = await server.handle_message(request("logging/setLevel", {}))

        assert ok["result"] == {}
        assert server.log_level == "debug"
        assert bad["error"]["code"] == -32602


class TestNotifications:
    """Tests for outbound notifications."""

    async def test_ut_m010_progress_pushed_with_token(self, server, transport):
        """UT-M010: Progress notifications carry the caller's token."""
        await server.handle_message(
            request("tools/call", {"name": "test_tool_with_progress", "_meta": {"progressToken": "t1"}})
        )

        progress = [m["params"] for m in transport.pushed if m["method"] == "notifications/progress"]
        assert [p["progress"] for p in progress] == [10, 50, 100]
        assert {p["progressToken"] for p in progress} == {"t1"}

    async def test_ut_m011_no_progress_without_token(self, server, transport):
        """UT-M011: Without a progress token nothing is pushed."""
        await server.handle_message(request("tools/call", {"name": "test_tool_with_progress"}))
        assert transport.pushed == []


class TestServerRequests:
    """Tests for server-to-client requests."""

    async def test_ut_m012_request_resolved_by_response(self, server, transport):
        """UT-M012: A client response resolves the pending server request."""
        task = asyncio.create_task(server.send_request("sampling/createMessage", {"maxTokens": 1}))
        await asyncio.sleep(0)
        pushed = transport.pushed[-1]

        await server.handle_message({"jsonrpc": "2.0", "id": pushed["id"], "result": {"model": "m"}})

        assert await task == {"model": "m"}

    async def test_ut_m013_request_without_stream(self):
        """UT-M013: Server requests need an open stream."""
        server = McpServer("no-stream")
        server.bind(FakeTransport(has_stream=False))

        with pytest.raises(ProtocolError, match="no open stream"):
            await server.send_request("elicitation/create")

    async def test_ut_m014_dispose_fails_pending(self, server, transport):
        """UT-M014: dispose fails outstanding requests and refuses new messages."""
        task = asyncio.create_task(server.send_request("elicitation/create"))
        await asyncio.sleep(0)

        await server.dispose()

        with pytest.raises(EngineDisposedError):
            await task
        with pytest.raises(EngineDisposedError):
            await server.handle_message(request("ping"))
