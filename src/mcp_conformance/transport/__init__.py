"""Transport module - streamable HTTP transport with per-session state.

Provides the session registry, the aiohttp transport adapter and the
listener lifecycle used by server-role scenarios.
"""

from .adapter import DEFAULT_PATH, SESSION_HEADER, TransportAdapter, build_app
from .lifecycle import ServerLifecycle
from .session import Session, SessionRegistry, SessionState, SessionTransport
from .stream import ServerStream, format_event, is_event_stream

__all__ = [
    "DEFAULT_PATH",
    "SESSION_HEADER",
    "ServerLifecycle",
    "ServerStream",
    "Session",
    "SessionRegistry",
    "SessionState",
    "SessionTransport",
    "TransportAdapter",
    "build_app",
    "format_event",
    "is_event_stream",
]
