"""ServerStream - server-push channel for one session.

Messages pushed by a protocol engine are queued and written to the client's
GET response as SSE events. Idle streams get keep-alive comments so that a
vanished client is noticed on the next write.
"""

import asyncio
import json
import logging
from typing import Any, Optional

from aiohttp import web

logger = logging.getLogger(__name__)

SSE_CONTENT_TYPE = "text/event-stream"
DEFAULT_KEEPALIVE_INTERVAL = 15.0


def is_event_stream(content_type: Optional[str]) -> bool:
    """Check if a Content-Type header denotes an SSE stream.

    Args:
        content_type: HTTP Content-Type header value

    Returns:
        True if response is text/event-stream
    """
    if not content_type:
        return False
    return content_type.startswith(SSE_CONTENT_TYPE)


def format_event(message: dict[str, Any], event: str = "message") -> bytes:
    """Encode a JSON-RPC message as one SSE event."""
    return f"event: {event}\ndata: {json.dumps(message)}\n\n".encode()


class ServerStream:
    """Queue-backed SSE writer owned by a single session."""

    def __init__(self, session_id: str, keepalive_interval: float = DEFAULT_KEEPALIVE_INTERVAL):
        """Initialize ServerStream.

        Args:
            session_id: Session the stream belongs to
            keepalive_interval: Seconds of idleness before a keep-alive comment is written
        """
        self.session_id = session_id
        self.keepalive_interval = keepalive_interval
        self._queue: asyncio.Queue[Optional[dict[str, Any]]] = asyncio.Queue()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def send(self, message: dict[str, Any]) -> bool:
        """Queue a message for delivery.

        Returns:
            False if the stream is already closed
        """
        if self._closed:
            return False
        self._queue.put_nowait(message)
        return True

    def close(self) -> None:
        """Close the stream; queued messages are flushed before the pump exits."""
        if self._closed:
            return
        self._closed = True
        self._queue.put_nowait(None)

    async def pump(self, response: web.StreamResponse) -> None:
        """Write queued messages to ``response`` until the stream is closed.

        Returns normally when closed by the server side. Raises
        ConnectionResetError (or CancelledError) when the client goes away.
        """
        while True:
            try:
                message = await asyncio.wait_for(self._queue.get(), timeout=self.keepalive_interval)
            except asyncio.TimeoutError:
                await response.write(b": keepalive\n\n")
                continue

            if message is None:
                logger.debug(f"Stream closed: session={self.session_id}")
                return
            await response.write(format_event(message))
