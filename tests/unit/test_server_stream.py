"""Unit tests for ServerStream and SSE encoding."""

import asyncio
import json

import pytest

from mcp_conformance.transport.session import SessionTransport
from mcp_conformance.transport.stream import ServerStream, format_event, is_event_stream

pytestmark = [pytest.mark.unit, pytest.mark.transport]


class FakeResponse:
    """Collects bytes written by the pump."""

    def __init__(self, fail_after: int | None = None):
        self.chunks: list[bytes] = []
        self.fail_after = fail_after

    async def write(self, data: bytes) -> None:
        if self.fail_after is not None and len(self.chunks) >= self.fail_after:
            raise ConnectionResetError("client went away")
        self.chunks.append(data)


class TestEncoding:
    def test_format_event(self):
        data = format_event({"jsonrpc": "2.0", "method": "ping"})

        text = data.decode()
        assert text.startswith("event: message\ndata: ")
        assert text.endswith("\n\n")
        assert json.loads(text.split("data: ", 1)[1]) == {"jsonrpc": "2.0", "method": "ping"}

    @pytest.mark.parametrize(
        "content_type,expected",
        [
            ("text/event-stream", True),
            ("text/event-stream; charset=utf-8", True),
            ("application/json", False),
            (None, False),
        ],
    )
    def test_is_event_stream(self, content_type, expected):
        assert is_event_stream(content_type) is expected


class TestServerStream:
    async def test_pump_flushes_queued_messages_then_returns(self):
        stream = ServerStream("s1")
        stream.send({"n": 1})
        stream.send({"n": 2})
        stream.close()
        response = FakeResponse()

        await stream.pump(response)

        assert [json.loads(c.decode().split("data: ", 1)[1]) for c in response.chunks] == [{"n": 1}, {"n": 2}]

    async def test_send_after_close_rejected(self):
        stream = ServerStream("s1")
        stream.close()
        stream.close()

        assert stream.send({"n": 1}) is False

    async def test_keepalive_written_when_idle(self):
        stream = ServerStream("s1", keepalive_interval=0.01)
        response = FakeResponse()
        task = asyncio.create_task(stream.pump(response))

        await asyncio.sleep(0.05)
        stream.close()
        await task

        assert b": keepalive\n\n" in response.chunks

    async def test_pump_raises_on_disconnect(self):
        stream = ServerStream("s1", keepalive_interval=0.01)

        with pytest.raises(ConnectionResetError):
            await stream.pump(FakeResponse(fail_after=0))


class TestSessionTransport:
    async def test_push_without_stream(self):
        transport = SessionTransport("s1")

        assert transport.has_stream is False
        assert await transport.push({"n": 1}) is False

    async def test_push_with_stream(self):
        transport = SessionTransport("s1")
        stream = ServerStream("s1")
        transport.attach(stream)

        assert await transport.push({"n": 1}) is True

    async def test_attach_returns_previous(self):
        transport = SessionTransport("s1")
        first = ServerStream("s1")
        transport.attach(first)

        assert transport.attach(ServerStream("s1")) is first
