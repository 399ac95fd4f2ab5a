"""McpServer - reference protocol engine used by server-role scenarios.

Dispatches MCP JSON-RPC methods to registered tools and prompts. Tools can
send log and progress notifications and issue server-to-client requests
(sampling, elicitation) over the session's push stream.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Optional

from ..errors import (
    JSONRPC_INTERNAL_ERROR,
    JSONRPC_INVALID_PARAMS,
    JSONRPC_METHOD_NOT_FOUND,
    JSONRPC_SERVER_ERROR,
    EngineDisposedError,
    ProtocolError,
    jsonrpc_error_response,
)
from ..types import DEFAULT_SPEC_VERSION

if TYPE_CHECKING:
    from ..transport.session import SessionTransport

logger = logging.getLogger(__name__)

SUPPORTED_PROTOCOL_VERSIONS = ("2024-11-05", "2025-03-26", DEFAULT_SPEC_VERSION)
DEFAULT_REQUEST_TIMEOUT = 30.0

ToolHandler = Callable[[dict[str, Any], "ToolContext"], Awaitable[dict[str, Any]]]
PromptHandler = Callable[[dict[str, Any]], Awaitable[dict[str, Any]]]
CompletionHandler = Callable[[dict[str, Any]], Awaitable[dict[str, Any]]]


@dataclass
class Tool:
    """Tool exposed through tools/list and tools/call."""

    name: str
    description: str
    handler: ToolHandler
    input_schema: dict[str, Any] = field(
        default_factory=lambda: {"type": "object", "properties": {}, "required": []}
    )

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "description": self.description, "inputSchema": self.input_schema}


@dataclass
class Prompt:
    """Prompt exposed through prompts/list and prompts/get."""

    name: str
    description: str
    handler: PromptHandler
    arguments: list[dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"name": self.name, "description": self.description}
        if self.arguments:
            data["arguments"] = self.arguments
        return data


class ToolContext:
    """Per-call handle given to tool handlers."""

    def __init__(self, server: "McpServer", request_id: Any, progress_token: Any = None):
        self.server = server
        self.request_id = request_id
        self.progress_token = progress_token

    async def log(self, level: str, data: Any, logger_name: Optional[str] = None) -> bool:
        """Send a notifications/message log entry to the client."""
        params: dict[str, Any] = {"level": level, "data": data}
        if logger_name:
            params["logger"] = logger_name
        return await self.server.notify("notifications/message", params)

    async def progress(self, progress: float, total: Optional[float] = None) -> bool:
        """Send a notifications/progress update if the caller supplied a progress token."""
        if self.progress_token is None:
            return False
        params: dict[str, Any] = {"progressToken": self.progress_token, "progress": progress}
        if total is not None:
            params["total"] = total
        return await self.server.notify("notifications/progress", params)

    async def request(
        self,
        method: str,
        params: Optional[dict[str, Any]] = None,
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
    ) -> dict[str, Any]:
        """Issue a server-to-client request and wait for its result."""
        return await self.server.send_request(method, params, timeout=timeout)


class McpServer:
    """Protocol engine implementing the server side of MCP for one session."""

    def __init__(
        self,
        name: str,
        version: str = "1.0.0",
        instructions: Optional[str] = None,
    ):
        """Initialize McpServer.

        Args:
            name: serverInfo.name reported on initialize
            version: serverInfo.version reported on initialize
            instructions: Optional instructions returned on initialize
        """
        self.name = name
        self.version = version
        self.instructions = instructions
        self.on_initialize: Optional[Callable[[dict[str, Any]], None]] = None
        self.client_params: Optional[dict[str, Any]] = None
        self.log_level: Optional[str] = None

        self._tools: dict[str, Tool] = {}
        self._prompts: dict[str, Prompt] = {}
        self._completion_handler: Optional[CompletionHandler] = None
        self._transport: Optional["SessionTransport"] = None
        self._pending: dict[int, asyncio.Future] = {}
        self._next_request_id = 0
        self._disposed = False

        self._handlers: dict[str, Callable[[dict[str, Any], Any], Awaitable[dict[str, Any]]]] = {
            "initialize": self._handle_initialize,
            "ping": self._handle_ping,
            "tools/list": self._handle_tools_list,
            "tools/call": self._handle_tools_call,
            "prompts/list": self._handle_prompts_list,
            "prompts/get": self._handle_prompts_get,
            "logging/setLevel": self._handle_set_level,
            "completion/complete": self._handle_complete,
        }

    # -- registration -------------------------------------------------------

    def add_tool(
        self,
        name: str,
        description: str,
        handler: ToolHandler,
        input_schema: Optional[dict[str, Any]] = None,
    ) -> None:
        tool = Tool(name=name, description=description, handler=handler)
        if input_schema is not None:
            tool.input_schema = input_schema
        self._tools[name] = tool

    def tool(
        self, name: str, description: str, input_schema: Optional[dict[str, Any]] = None
    ) -> Callable[[ToolHandler], ToolHandler]:
        """Decorator form of add_tool."""

        def decorator(func: ToolHandler) -> ToolHandler:
            self.add_tool(name, description, func, input_schema)
            return func

        return decorator

    def add_prompt(
        self,
        name: str,
        description: str,
        handler: PromptHandler,
        arguments: Optional[list[dict[str, Any]]] = None,
    ) -> None:
        self._prompts[name] = Prompt(
            name=name, description=description, handler=handler, arguments=arguments or []
        )

    def set_completion_handler(self, handler: CompletionHandler) -> None:
        self._completion_handler = handler

    @property
    def capabilities(self) -> dict[str, Any]:
        capabilities: dict[str, Any] = {"logging": {}}
        if self._tools:
            capabilities["tools"] = {}
        if self._prompts:
            capabilities["prompts"] = {}
        if self._completion_handler is not None:
            capabilities["completions"] = {}
        return capabilities

    # -- ProtocolEngine -----------------------------------------------------

    def bind(self, transport: "SessionTransport") -> None:
        self._transport = transport

    async def handle_message(self, message: dict[str, Any]) -> Optional[dict[str, Any]]:
        """Handle incoming JSON-RPC message from the client.

        Returns:
            JSON-RPC response object, or None for notifications and responses
        """
        if self._disposed:
            raise EngineDisposedError()

        method = message.get("method")
        request_id = message.get("id")

        if method is None:
            self._resolve_pending(message)
            return None

        # JSON-RPC notifications have no id and never get a response
        if "id" not in message:
            logger.debug(f"Received notification: {method}")
            return None

        handler = self._handlers.get(method)
        if handler is None:
            return jsonrpc_error_response(request_id, JSONRPC_METHOD_NOT_FOUND, f"Method not found: {method}")

        try:
            result = await handler(message.get("params") or {}, request_id)
        except ProtocolError as e:
            return jsonrpc_error_response(request_id, e.code, e.message)
        except EngineDisposedError:
            raise
        except Exception as e:
            logger.exception(f"Error handling {method}: {e}")
            return jsonrpc_error_response(request_id, JSONRPC_INTERNAL_ERROR, f"Internal error: {e}")
        return {"jsonrpc": "2.0", "id": request_id, "result": result}

    async def dispose(self) -> None:
        """Fail every outstanding server-to-client request."""
        self._disposed = True
        pending, self._pending = self._pending, {}
        for future in pending.values():
            if not future.done():
                future.set_exception(EngineDisposedError())
        self._transport = None

    # -- outbound -----------------------------------------------------------

    async def notify(self, method: str, params: Optional[dict[str, Any]] = None) -> bool:
        """Push a notification to the client over the open stream."""
        if self._transport is None:
            return False
        message: dict[str, Any] = {"jsonrpc": "2.0", "method": method}
        if params is not None:
            message["params"] = params
        return await self._transport.push(message)

    async def send_request(
        self,
        method: str,
        params: Optional[dict[str, Any]] = None,
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
    ) -> dict[str, Any]:
        """Send a request to the client and wait for the matching response.

        Raises:
            ProtocolError: If no stream is open, the request times out, or the
                client answers with an error
            EngineDisposedError: If the session ends while waiting
        """
        if self._disposed:
            raise EngineDisposedError()
        if self._transport is None or not self._transport.has_stream:
            raise ProtocolError(
                code=JSONRPC_SERVER_ERROR,
                message=f"Cannot send {method}: no open stream for this session",
            )

        self._next_request_id += 1
        request_id = self._next_request_id
        future: asyncio.Future = asyncio.get_running_loop().create_future()
        self._pending[request_id] = future

        request: dict[str, Any] = {"jsonrpc": "2.0", "id": request_id, "method": method}
        if params is not None:
            request["params"] = params

        try:
            await self._transport.push(request)
            response = await asyncio.wait_for(future, timeout)
        except asyncio.TimeoutError as e:
            raise ProtocolError(
                code=JSONRPC_SERVER_ERROR, message=f"Timed out waiting for {method} response"
            ) from e
        finally:
            self._pending.pop(request_id, None)

        if "error" in response:
            error = response["error"] or {}
            raise ProtocolError(
                code=error.get("code", JSONRPC_SERVER_ERROR),
                message=error.get("message", f"{method} failed"),
            )
        return response.get("result") or {}

    def _resolve_pending(self, message: dict[str, Any]) -> None:
        future = self._pending.get(message.get("id"))
        if future is None:
            logger.warning(f"Response for unknown request id: {message.get('id')}")
            return
        if not future.done():
            future.set_result(message)

    # -- method handlers ----------------------------------------------------

    async def _handle_initialize(self, params: dict[str, Any], request_id: Any) -> dict[str, Any]:
        self.client_params = params
        if self.on_initialize is not None:
            self.on_initialize(params)

        requested = params.get("protocolVersion")
        version = requested if requested in SUPPORTED_PROTOCOL_VERSIONS else DEFAULT_SPEC_VERSION
        result: dict[str, Any] = {
            "protocolVersion": version,
            "capabilities": self.capabilities,
            "serverInfo": {"name": self.name, "version": self.version},
        }
        if self.instructions:
            result["instructions"] = self.instructions
        return result

    async def _handle_ping(self, params: dict[str, Any], request_id: Any) -> dict[str, Any]:
        return {}

    async def _handle_tools_list(self, params: dict[str, Any], request_id: Any) -> dict[str, Any]:
        return {"tools": [tool.to_dict() for tool in self._tools.values()]}

    async def _handle_tools_call(self, params: dict[str, Any], request_id: Any) -> dict[str, Any]:
        name = params.get("name", "")
        tool = self._tools.get(name)
        if tool is None:
            raise ProtocolError(code=JSONRPC_INVALID_PARAMS, message=f"Unknown tool: {name}")

        meta = params.get("_meta") or {}
        context = ToolContext(self, request_id, progress_token=meta.get("progressToken"))
        try:
            return await tool.handler(params.get("arguments") or {}, context)
        except EngineDisposedError:
            raise
        except Exception as e:
            # Tool failures are reported in-band per MCP
            logger.info(f"Tool {name} failed: {e}")
            return {"content": [{"type": "text", "text": str(e)}], "isError": True}

    async def _handle_prompts_list(self, params: dict[str, Any], request_id: Any) -> dict[str, Any]:
        return {"prompts": [prompt.to_dict() for prompt in self._prompts.values()]}

    async def _handle_prompts_get(self, params: dict[str, Any], request_id: Any) -> dict[str, Any]:
        name = params.get("name", "")
        prompt = self._prompts.get(name)
        if prompt is None:
            raise ProtocolError(code=JSONRPC_INVALID_PARAMS, message=f"Unknown prompt: {name}")
        return await prompt.handler(params.get("arguments") or {})

    async def _handle_set_level(self, params: dict[str, Any], request_id: Any) -> dict[str, Any]:
        level = params.get("level")
        if not isinstance(level, str):
            raise ProtocolError(message="Missing logging level")
        self.log_level = level
        return {}

    async def _handle_complete(self, params: dict[str, Any], request_id: Any) -> dict[str, Any]:
        if self._completion_handler is None:
            return {"completion": {"values": [], "total": 0, "hasMore": False}}
        return await self._completion_handler(params)
