"""McpClient - streamable HTTP MCP client used by probes.

Handles the client side of the transport:
- POST <url> for JSON-RPC requests (JSON or SSE responses)
- GET <url> for the server-push stream
- DELETE <url> to terminate the session
"""

import asyncio
import json
import logging
from typing import Any, Awaitable, Callable, Optional
from urllib.parse import urlparse

import httpx
from httpx_sse import EventSource, SSEError, aconnect_sse

from ..errors import (
    JSONRPC_INTERNAL_ERROR,
    JSONRPC_METHOD_NOT_FOUND,
    McpClientError,
    jsonrpc_error_response,
    map_connection_error,
    map_http_error,
)
from ..transport.adapter import SESSION_HEADER
from ..transport.stream import is_event_stream
from ..types import DEFAULT_SPEC_VERSION

logger = logging.getLogger(__name__)

CLIENT_INFO = {"name": "conformance-test-client", "version": "1.0.0"}
DEFAULT_TIMEOUT = 30.0
DEFAULT_STREAM_OPEN_TIMEOUT = 5.0

NotificationHandler = Callable[[dict[str, Any]], None]
RequestHandler = Callable[[dict[str, Any]], Awaitable[dict[str, Any]]]


class McpClient:
    """MCP client bound to one server endpoint and at most one session."""

    def __init__(
        self,
        url: str,
        timeout: float = DEFAULT_TIMEOUT,
        client_info: Optional[dict[str, Any]] = None,
        capabilities: Optional[dict[str, Any]] = None,
        protocol_version: str = DEFAULT_SPEC_VERSION,
    ):
        """Initialize McpClient.

        Args:
            url: MCP endpoint URL (e.g., http://localhost:3000/mcp)
            timeout: Request timeout in seconds (default: 30)
            client_info: clientInfo sent on initialize
            capabilities: Client capabilities sent on initialize
            protocol_version: Protocol version requested on initialize

        Raises:
            ValueError: If URL is invalid
        """
        parsed = urlparse(url)
        if not parsed.scheme or not parsed.netloc:
            raise ValueError(f"Invalid URL: {url}")

        self.url = url
        self.timeout = timeout
        self.client_info = client_info or dict(CLIENT_INFO)
        self.capabilities = capabilities if capabilities is not None else {"sampling": {}, "elicitation": {}}
        self.protocol_version = protocol_version
        self.session_id: Optional[str] = None
        self.server_result: Optional[dict[str, Any]] = None

        self._client: Optional[httpx.AsyncClient] = None
        self._closed = False
        self._request_id = 0
        self._notification_handlers: dict[str, list[NotificationHandler]] = {}
        self._request_handlers: dict[str, RequestHandler] = {}
        self._stream_task: Optional[asyncio.Task] = None
        self._stream_error: Optional[McpClientError] = None
        self._answer_tasks: set[asyncio.Task] = set()

    async def __aenter__(self) -> "McpClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    # -- configuration ------------------------------------------------------

    def on_notification(self, method: str, handler: NotificationHandler) -> None:
        """Register a listener for server notifications with ``method``."""
        self._notification_handlers.setdefault(method, []).append(handler)

    def on_request(self, method: str, handler: RequestHandler) -> None:
        """Register the handler answering server-to-client requests with ``method``."""
        self._request_handlers[method] = handler

    def _get_headers(self) -> dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            "Accept": "application/json, text/event-stream",
        }
        if self.session_id:
            headers[SESSION_HEADER] = self.session_id
        if self.server_result:
            headers["MCP-Protocol-Version"] = self.server_result.get("protocolVersion", self.protocol_version)
        return headers

    async def _ensure_client(self) -> httpx.AsyncClient:
        """Ensure HTTP client is initialized."""
        if self._closed:
            raise McpClientError(message="McpClient is closed")
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=httpx.Timeout(self.timeout))
        return self._client

    def _next_id(self) -> int:
        self._request_id += 1
        return self._request_id

    # -- protocol operations ------------------------------------------------

    async def initialize(self) -> dict[str, Any]:
        """Perform the initialize handshake and send notifications/initialized.

        Returns:
            Initialize result with protocolVersion, capabilities, serverInfo
        """
        response = await self.send_message(
            {
                "jsonrpc": "2.0",
                "id": self._next_id(),
                "method": "initialize",
                "params": {
                    "protocolVersion": self.protocol_version,
                    "capabilities": self.capabilities,
                    "clientInfo": self.client_info,
                },
            }
        )
        result = self._unwrap(response, "initialize")
        self.server_result = result
        await self.notify("notifications/initialized")
        return result

    async def request(self, method: str, params: Optional[dict[str, Any]] = None) -> dict[str, Any]:
        """Send a request and return its result.

        Raises:
            McpClientError: On transport failure or JSON-RPC error response
        """
        message: dict[str, Any] = {"jsonrpc": "2.0", "id": self._next_id(), "method": method}
        if params is not None:
            message["params"] = params
        response = await self.send_message(message)
        return self._unwrap(response, method)

    async def notify(self, method: str, params: Optional[dict[str, Any]] = None) -> None:
        message: dict[str, Any] = {"jsonrpc": "2.0", "method": method}
        if params is not None:
            message["params"] = params
        await self.send_message(message)

    async def ping(self) -> dict[str, Any]:
        return await self.request("ping")

    async def list_tools(self) -> dict[str, Any]:
        return await self.request("tools/list")

    async def call_tool(
        self,
        name: str,
        arguments: Optional[dict[str, Any]] = None,
        progress_token: Optional[str] = None,
    ) -> dict[str, Any]:
        params: dict[str, Any] = {"name": name, "arguments": arguments or {}}
        if progress_token is not None:
            params["_meta"] = {"progressToken": progress_token}
        return await self.request("tools/call", params)

    async def list_prompts(self) -> dict[str, Any]:
        return await self.request("prompts/list")

    async def get_prompt(self, name: str, arguments: Optional[dict[str, str]] = None) -> dict[str, Any]:
        params: dict[str, Any] = {"name": name}
        if arguments:
            params["arguments"] = arguments
        return await self.request("prompts/get", params)

    async def set_logging_level(self, level: str) -> dict[str, Any]:
        return await self.request("logging/setLevel", {"level": level})

    async def complete(self, ref: dict[str, Any], argument: dict[str, Any]) -> dict[str, Any]:
        return await self.request("completion/complete", {"ref": ref, "argument": argument})

    def _unwrap(self, response: Optional[dict[str, Any]], method: str) -> dict[str, Any]:
        if response is None:
            raise McpClientError(message=f"No response to {method}")
        if "error" in response:
            error = response["error"] or {}
            raise McpClientError(
                code=error.get("code", JSONRPC_INTERNAL_ERROR),
                message=error.get("message", f"{method} failed"),
                data={"error": error},
            )
        return response.get("result") or {}

    # -- HTTP transport -----------------------------------------------------

    async def send_message(self, message: dict[str, Any]) -> Optional[dict[str, Any]]:
        """POST one JSON-RPC message.

        Returns:
            The matching JSON-RPC response, or None when the message was a
            notification or a response

        Raises:
            McpClientError: On connection or HTTP error
        """
        client = await self._ensure_client()
        expects_response = "method" in message and "id" in message

        try:
            async with client.stream("POST", self.url, json=message, headers=self._get_headers()) as response:
                if response.status_code >= 400:
                    body = (await response.aread()).decode(errors="replace")
                    raise map_http_error(response.status_code, body)

                if message.get("method") == "initialize" and SESSION_HEADER in response.headers:
                    self.session_id = response.headers[SESSION_HEADER]
                    logger.debug(f"Session established: {self.session_id}")

                if not expects_response or response.status_code == 202:
                    await response.aread()
                    return None

                if is_event_stream(response.headers.get("content-type")):
                    return await self._read_sse_response(response, message["id"])

                body = await response.aread()
                try:
                    return json.loads(body)
                except json.JSONDecodeError as e:
                    raise McpClientError(message=f"Invalid JSON response: {e}") from e

        except httpx.ConnectError as e:
            raise map_connection_error(str(e), self.url) from e
        except httpx.TimeoutException as e:
            raise map_connection_error(str(e), self.url, is_timeout=True) from e
        except (httpx.HTTPError, SSEError) as e:
            raise McpClientError(message=f"Transport error: {e}") from e

    async def _read_sse_response(self, response: httpx.Response, request_id: Any) -> dict[str, Any]:
        """Read an SSE POST response, dispatching everything up to the matching response."""
        async for sse in EventSource(response).aiter_sse():
            message = self._parse_event(sse.data)
            if message is None:
                continue
            if message.get("id") == request_id and ("result" in message or "error" in message):
                return message
            await self._dispatch(message)
        raise McpClientError(message=f"SSE stream ended without a response to request {request_id}")

    def _parse_event(self, data: str) -> Optional[dict[str, Any]]:
        if not data:
            return None
        try:
            message = json.loads(data)
        except json.JSONDecodeError:
            logger.warning(f"Invalid JSON in SSE event: {data}")
            return None
        return message if isinstance(message, dict) else None

    async def _dispatch(self, message: dict[str, Any]) -> None:
        method = message.get("method")
        if method is None:
            logger.debug(f"Ignoring unsolicited response: id={message.get('id')}")
            return

        if "id" in message:
            # Answer in the background so the stream keeps being read
            task = asyncio.create_task(self._answer(message))
            self._answer_tasks.add(task)
            task.add_done_callback(self._answer_tasks.discard)
            return

        for handler in self._notification_handlers.get(method, []):
            try:
                handler(message)
            except Exception as e:
                logger.warning(f"Notification handler for {method} failed: {e}")

    async def _answer(self, request: dict[str, Any]) -> None:
        method = request["method"]
        request_id = request["id"]
        handler = self._request_handlers.get(method)

        if handler is None:
            response = jsonrpc_error_response(request_id, JSONRPC_METHOD_NOT_FOUND, f"Method not found: {method}")
        else:
            try:
                result = await handler(request.get("params") or {})
                response = {"jsonrpc": "2.0", "id": request_id, "result": result}
            except McpClientError as e:
                response = jsonrpc_error_response(request_id, e.code, e.message)
            except Exception as e:
                logger.warning(f"Request handler for {method} failed: {e}")
                response = jsonrpc_error_response(request_id, JSONRPC_INTERNAL_ERROR, str(e))

        try:
            await self.send_message(response)
        except McpClientError as e:
            logger.warning(f"Failed to answer {method} request {request_id}: {e.message}")

    # -- server-push stream -------------------------------------------------

    @property
    def stream_open(self) -> bool:
        return self._stream_task is not None and not self._stream_task.done()

    async def open_stream(self, timeout: float = DEFAULT_STREAM_OPEN_TIMEOUT) -> None:
        """Open the GET stream and return once the server has accepted it.

        Raises:
            McpClientError: If the server rejects the stream or does not answer in time
        """
        if self.stream_open:
            return
        if not self.session_id:
            raise McpClientError(message="Cannot open stream before initialize")

        ready = asyncio.Event()
        self._stream_error = None
        self._stream_task = asyncio.create_task(self._run_stream(ready))
        try:
            await asyncio.wait_for(ready.wait(), timeout)
        except asyncio.TimeoutError as e:
            raise McpClientError(message=f"Stream not established after {timeout}s") from e
        if self._stream_error is not None:
            raise self._stream_error

    async def _run_stream(self, ready: asyncio.Event) -> None:
        """Read the GET stream in the background, dispatching every message."""
        client = await self._ensure_client()
        headers = self._get_headers()
        headers.pop("Content-Type")

        try:
            async with aconnect_sse(
                client,
                "GET",
                self.url,
                headers=headers,
                timeout=httpx.Timeout(self.timeout, read=None),
            ) as event_source:
                response = event_source.response
                if response.status_code >= 400:
                    body = (await response.aread()).decode(errors="replace")
                    raise map_http_error(response.status_code, body)

                logger.info(f"Stream connected to {self.url}")
                ready.set()
                async for sse in event_source.aiter_sse():
                    message = self._parse_event(sse.data)
                    if message is not None:
                        await self._dispatch(message)
            logger.info("Stream closed by server")
        except McpClientError as e:
            self._stream_error = e
        except (httpx.HTTPError, SSEError) as e:
            logger.warning(f"Stream connection dropped: {e}")
            self._stream_error = McpClientError(message=f"Stream failed: {e}")
        finally:
            ready.set()

    async def close_stream(self) -> None:
        """Drop the GET stream without ending the session."""
        task, self._stream_task = self._stream_task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    # -- teardown -----------------------------------------------------------

    async def terminate(self) -> None:
        """End the session with DELETE.

        Raises:
            McpClientError: If the server rejects the termination
        """
        if not self.session_id:
            return
        client = await self._ensure_client()
        try:
            response = await client.delete(self.url, headers=self._get_headers())
        except httpx.ConnectError as e:
            raise map_connection_error(str(e), self.url) from e
        except httpx.TimeoutException as e:
            raise map_connection_error(str(e), self.url, is_timeout=True) from e
        except httpx.HTTPError as e:
            raise McpClientError(message=f"Transport error: {e}") from e
        if response.status_code >= 400:
            raise map_http_error(response.status_code, response.text)
        self.session_id = None

    async def close(self) -> None:
        """Close the stream and HTTP client. Idempotent."""
        await self.close_stream()
        for task in list(self._answer_tasks):
            task.cancel()
        self._closed = True
        if self._client:
            await self._client.aclose()
            self._client = None
