"""Session registry for the streamable HTTP transport.

Each session moves through INITIALIZING -> ACTIVE <-> STREAMING -> CLOSED.
The registry owns every session; a session owns its transport handle and its
protocol engine. Lookups are keyed by session id only.
"""

import asyncio
import logging
import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from ..errors import EngineDisposedError, InvalidSessionError
from ..protocol.engine import EngineFactory, ProtocolEngine
from .stream import DEFAULT_KEEPALIVE_INTERVAL, ServerStream

logger = logging.getLogger(__name__)


class SessionState(Enum):
    """Lifecycle state of one session."""

    INITIALIZING = "initializing"
    ACTIVE = "active"
    STREAMING = "streaming"
    CLOSED = "closed"


class SessionTransport:
    """Transport handle bound to one session.

    Gives the protocol engine out-of-band delivery over whichever stream is
    currently open for the session.
    """

    def __init__(self, session_id: str):
        self.session_id = session_id
        self._stream: Optional[ServerStream] = None

    @property
    def stream(self) -> Optional[ServerStream]:
        return self._stream

    @property
    def has_stream(self) -> bool:
        return self._stream is not None and not self._stream.closed

    def attach(self, stream: ServerStream) -> Optional[ServerStream]:
        """Make ``stream`` current and return the one it replaces."""
        previous = self._stream
        self._stream = stream
        return previous

    def detach(self) -> Optional[ServerStream]:
        stream = self._stream
        self._stream = None
        return stream

    async def push(self, message: dict[str, Any]) -> bool:
        """Deliver a message over the open stream.

        Returns:
            False when no stream is open
        """
        if not self.has_stream:
            logger.debug(f"No open stream, dropping message: session={self.session_id}")
            return False
        return self._stream.send(message)


@dataclass
class Session:
    """Live server-side state for one session id."""

    session_id: str
    transport: SessionTransport
    engine: ProtocolEngine
    state: SessionState = SessionState.INITIALIZING


class SessionRegistry:
    """Maps session ids to live sessions and drives their state machine."""

    def __init__(
        self,
        engine_factory: EngineFactory,
        keepalive_interval: float = DEFAULT_KEEPALIVE_INTERVAL,
    ):
        """Initialize SessionRegistry.

        Args:
            engine_factory: Builds one protocol engine per session
            keepalive_interval: Keep-alive interval for streams opened by this registry
        """
        self._engine_factory = engine_factory
        self._keepalive_interval = keepalive_interval
        self._sessions: dict[str, Session] = {}
        self._issued: set[str] = set()
        self._lock = asyncio.Lock()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def get(self, session_id: str) -> Optional[Session]:
        return self._sessions.get(session_id)

    def session_ids(self) -> list[str]:
        return list(self._sessions)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)

    def _mint_id(self) -> str:
        while True:
            session_id = uuid.uuid4().hex
            if session_id not in self._issued:
                self._issued.add(session_id)
                return session_id

    def _require(self, session_id: Optional[str], *states: SessionState) -> Session:
        session = self._sessions.get(session_id) if session_id else None
        if session is None or session.state not in states:
            raise InvalidSessionError()
        return session

    async def create(self, message: dict[str, Any]) -> tuple[Optional[str], Optional[dict[str, Any]]]:
        """Create a session for an initialize request.

        The session becomes ACTIVE only if the engine accepts the initialize
        request; on an engine error the session is discarded.

        Args:
            message: JSON-RPC initialize request

        Returns:
            (session id or None if initialization was rejected, engine response)

        Raises:
            InvalidSessionError: If the registry is closed
        """
        session_id = self._mint_id()
        transport = SessionTransport(session_id)
        engine = self._engine_factory()
        engine.bind(transport)
        session = Session(session_id=session_id, transport=transport, engine=engine)

        async with self._lock:
            if self._closed:
                await engine.dispose()
                raise InvalidSessionError()
            self._sessions[session_id] = session

        try:
            response = await engine.handle_message(message)
        except EngineDisposedError as e:
            raise InvalidSessionError() from e
        except Exception:
            await self._discard(session_id)
            raise

        if session.state is SessionState.CLOSED:
            raise InvalidSessionError()
        if isinstance(response, dict) and "error" in response:
            logger.info(f"Initialize rejected by engine, discarding session {session_id}")
            await self._discard(session_id)
            return None, response

        session.state = SessionState.ACTIVE
        logger.info(f"Session created: {session_id}")
        return session_id, response

    async def continue_session(
        self, session_id: Optional[str], message: dict[str, Any]
    ) -> Optional[dict[str, Any]]:
        """Route a message to the session's engine.

        Raises:
            InvalidSessionError: If the id is unknown, or the session closed
                while the message was being handled
        """
        session = self._require(session_id, SessionState.ACTIVE, SessionState.STREAMING)
        try:
            response = await session.engine.handle_message(message)
        except EngineDisposedError as e:
            raise InvalidSessionError() from e
        if session.state is SessionState.CLOSED:
            raise InvalidSessionError()
        return response

    async def open_stream(self, session_id: Optional[str]) -> ServerStream:
        """Open the push stream for a session, superseding any open one.

        Raises:
            InvalidSessionError: If the id is unknown or the session is not usable
        """
        async with self._lock:
            session = self._require(session_id, SessionState.ACTIVE, SessionState.STREAMING)
            stream = ServerStream(session.session_id, keepalive_interval=self._keepalive_interval)
            previous = session.transport.attach(stream)
            session.state = SessionState.STREAMING

        if previous is not None:
            logger.info(f"Superseding open stream: session={session.session_id}")
            previous.close()
        return stream

    async def close_stream(self, session_id: Optional[str]) -> None:
        """Close the open stream and return the session to ACTIVE."""
        async with self._lock:
            session = self._require(session_id, SessionState.STREAMING)
            stream = session.transport.detach()
            session.state = SessionState.ACTIVE
        if stream is not None:
            stream.close()

    async def terminate(self, session_id: Optional[str]) -> None:
        """Tear down a session: close its stream, dispose its engine, remove it.

        Raises:
            InvalidSessionError: If the id is unknown
        """
        async with self._lock:
            session = self._sessions.pop(session_id, None) if session_id else None
            if session is None:
                raise InvalidSessionError()
            session.state = SessionState.CLOSED
        await self._dispose(session)
        logger.info(f"Session terminated: {session.session_id}")

    async def handle_disconnect(self, session_id: str, stream: ServerStream) -> bool:
        """Run the terminate path after the client dropped ``stream``.

        Streams that were superseded or already closed are ignored.

        Returns:
            True if the session was torn down
        """
        async with self._lock:
            session = self._sessions.get(session_id)
            if session is None or session.transport.stream is not stream:
                return False
            del self._sessions[session_id]
            session.state = SessionState.CLOSED
        logger.info(f"Stream disconnected, terminating session {session_id}")
        await self._dispose(session)
        return True

    async def close(self) -> None:
        """Terminate every live session and refuse new ones. Idempotent."""
        async with self._lock:
            self._closed = True
            sessions = list(self._sessions.values())
            self._sessions.clear()
            for session in sessions:
                session.state = SessionState.CLOSED

        for session in sessions:
            await self._dispose(session)
        if sessions:
            logger.info(f"Closed {len(sessions)} live sessions")

    async def _discard(self, session_id: str) -> None:
        async with self._lock:
            session = self._sessions.pop(session_id, None)
            if session is None:
                return
            session.state = SessionState.CLOSED
        await self._dispose(session)

    async def _dispose(self, session: Session) -> None:
        stream = session.transport.detach()
        if stream is not None:
            stream.close()
        try:
            await session.engine.dispose()
        except Exception as e:
            logger.exception(f"Error disposing engine for session {session.session_id}: {e}")
