"""Protocol engine contract.

The transport layer knows nothing about MCP methods. Each session gets its
own engine instance from an EngineFactory; the engine is bound to the
session's transport handle, receives every message POSTed to that session,
and is disposed when the session ends.
"""

from typing import TYPE_CHECKING, Any, Callable, Optional, Protocol

if TYPE_CHECKING:
    from ..transport.session import SessionTransport


class ProtocolEngine(Protocol):
    """Message-level protocol implementation for one session."""

    def bind(self, transport: "SessionTransport") -> None:
        """Attach the session's transport handle (request/response plus push)."""
        ...

    async def handle_message(self, message: dict[str, Any]) -> Optional[dict[str, Any]]:
        """Handle one incoming JSON-RPC message.

        Returns:
            JSON-RPC response, or None for notifications and client responses
        """
        ...

    async def dispose(self) -> None:
        """Release engine resources on session teardown."""
        ...


EngineFactory = Callable[[], ProtocolEngine]


def is_initialize_request(body: Any) -> bool:
    """Whether a POST body is an MCP initialize request."""
    return isinstance(body, dict) and body.get("method") == "initialize"
