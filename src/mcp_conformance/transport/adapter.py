"""TransportAdapter - streamable HTTP transport on a single aiohttp route.

- POST: initialize (no session header) or continue (session header)
- GET: open the server-push SSE stream for a session
- DELETE: terminate a session

Session binding travels in the ``mcp-session-id`` header in both directions.
"""

import asyncio
import json
import logging
from typing import Any, Callable, Mapping, Optional

from aiohttp import web

from ..errors import (
    INVALID_SESSION_MESSAGE,
    JSONRPC_INTERNAL_ERROR,
    JSONRPC_INVALID_REQUEST,
    JSONRPC_PARSE_ERROR,
    InvalidSessionError,
    jsonrpc_error_response,
)
from ..protocol.engine import is_initialize_request
from .session import SessionRegistry
from .stream import SSE_CONTENT_TYPE

logger = logging.getLogger(__name__)

SESSION_HEADER = "mcp-session-id"
DEFAULT_PATH = "/mcp"

# Called with (http_method, headers, body) for every request reaching the route
RequestObserver = Callable[[str, Mapping[str, str], Any], None]


class TransportAdapter:
    """Maps HTTP verbs on one path onto SessionRegistry operations."""

    def __init__(
        self,
        registry: SessionRegistry,
        path: str = DEFAULT_PATH,
        on_request: Optional[RequestObserver] = None,
    ):
        """Initialize TransportAdapter.

        Args:
            registry: Session registry owned by the enclosing scenario run
            path: Route path for all three verbs
            on_request: Optional observer for incoming requests
        """
        self.registry = registry
        self.path = path
        self.on_request = on_request

    def install(self, app: web.Application) -> None:
        """Register the POST/GET/DELETE routes on ``app``."""
        app.router.add_post(self.path, self.handle_post)
        app.router.add_get(self.path, self.handle_get)
        app.router.add_delete(self.path, self.handle_delete)

    def _observe(self, request: web.Request, body: Any = None) -> None:
        if self.on_request is None:
            return
        try:
            self.on_request(request.method, request.headers, body)
        except Exception as e:
            logger.warning(f"Request observer failed: {e}")

    async def handle_post(self, request: web.Request) -> web.Response:
        """Handle POST - initialize or continue a session."""
        session_id = request.headers.get(SESSION_HEADER)

        try:
            body = await request.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            logger.warning(f"Invalid JSON body: {e}")
            return web.json_response(
                jsonrpc_error_response(None, JSONRPC_PARSE_ERROR, "Parse error"), status=400
            )

        self._observe(request, body)

        if not isinstance(body, dict):
            return web.json_response(
                jsonrpc_error_response(None, JSONRPC_INVALID_REQUEST, "Invalid Request"),
                status=400,
            )

        new_session_id: Optional[str] = None
        try:
            if session_id:
                response = await self.registry.continue_session(session_id, body)
            elif is_initialize_request(body):
                new_session_id, response = await self.registry.create(body)
            else:
                raise InvalidSessionError()
        except InvalidSessionError as e:
            logger.debug(f"Rejected POST: session={session_id} method={body.get('method')}")
            return web.json_response({"jsonrpc": "2.0", "error": e.to_jsonrpc(), "id": None}, status=400)
        except Exception as e:
            logger.exception(f"Error handling POST: {e}")
            return web.json_response(
                jsonrpc_error_response(None, JSONRPC_INTERNAL_ERROR, "Internal server error"),
                status=500,
            )

        headers = {SESSION_HEADER: new_session_id} if new_session_id else {}
        if response is None:
            return web.Response(status=202, headers=headers)
        return web.json_response(response, headers=headers)

    async def handle_get(self, request: web.Request) -> web.StreamResponse:
        """Handle GET - open the SSE stream for an existing session."""
        session_id = request.headers.get(SESSION_HEADER)
        self._observe(request)

        try:
            stream = await self.registry.open_stream(session_id)
        except InvalidSessionError:
            return web.Response(status=400, text=INVALID_SESSION_MESSAGE)
        except Exception as e:
            logger.exception(f"Error opening stream: {e}")
            return web.Response(status=500, text="Error establishing SSE stream")

        response = web.StreamResponse(
            status=200,
            headers={
                "Content-Type": SSE_CONTENT_TYPE,
                "Cache-Control": "no-cache",
                SESSION_HEADER: stream.session_id,
            },
        )
        try:
            await response.prepare(request)
            await stream.pump(response)
        except ConnectionResetError:
            await self.registry.handle_disconnect(stream.session_id, stream)
        except asyncio.CancelledError:
            await self.registry.handle_disconnect(stream.session_id, stream)
            raise
        except Exception as e:
            logger.exception(f"Error on stream for session {stream.session_id}: {e}")
            await self.registry.handle_disconnect(stream.session_id, stream)
            if not response.prepared:
                return web.Response(status=500, text="Error establishing SSE stream")
        return response

    async def handle_delete(self, request: web.Request) -> web.Response:
        """Handle DELETE - terminate a session."""
        session_id = request.headers.get(SESSION_HEADER)
        self._observe(request)

        try:
            await self.registry.terminate(session_id)
        except InvalidSessionError:
            return web.Response(status=400, text=INVALID_SESSION_MESSAGE)
        except Exception as e:
            logger.exception(f"Error terminating session {session_id}: {e}")
            return web.Response(status=500, text="Error handling termination")
        return web.Response(status=200)


def build_app(
    registry: SessionRegistry,
    path: str = DEFAULT_PATH,
    on_request: Optional[RequestObserver] = None,
) -> web.Application:
    """Create an aiohttp application serving the transport on ``path``."""
    app = web.Application()
    TransportAdapter(registry, path=path, on_request=on_request).install(app)
    return app
