"""Error types for the conformance harness.

Session and transport errors are mapped onto JSON-RPC error objects at the
HTTP boundary; client-side HTTP failures are mapped onto McpClientError.
"""

from dataclasses import dataclass, field
from typing import Any
from urllib.parse import urlparse

# JSON-RPC error codes
JSONRPC_PARSE_ERROR = -32700
JSONRPC_INVALID_REQUEST = -32600
JSONRPC_METHOD_NOT_FOUND = -32601
JSONRPC_INVALID_PARAMS = -32602
JSONRPC_INTERNAL_ERROR = -32603
JSONRPC_SERVER_ERROR = -32000  # -32000 to -32099 reserved for implementation-defined server errors

INVALID_SESSION_MESSAGE = "Invalid or missing session ID"


@dataclass
class ConformanceError(Exception):
    """Base error class for harness errors."""

    code: int
    message: str
    data: dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        return self.message

    def to_jsonrpc(self) -> dict[str, Any]:
        """Convert to JSON-RPC error object."""
        error: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.data:
            error["data"] = self.data
        return error


@dataclass
class InvalidSessionError(ConformanceError):
    """Session id missing, unknown, or already closed."""

    code: int = JSONRPC_SERVER_ERROR
    message: str = INVALID_SESSION_MESSAGE


@dataclass
class TransportFault(ConformanceError):
    """Network or resource allocation failure (e.g. port bind)."""

    code: int = JSONRPC_SERVER_ERROR
    message: str = "Transport fault"


@dataclass
class EngineDisposedError(ConformanceError):
    """Protocol engine used after its session was torn down."""

    code: int = JSONRPC_SERVER_ERROR
    message: str = "Session closed"


@dataclass
class ProtocolError(ConformanceError):
    """JSON-RPC level error returned to the peer as an error response."""

    code: int = JSONRPC_INVALID_PARAMS
    message: str = "Invalid params"


@dataclass
class McpClientError(ConformanceError):
    """Error raised by McpClient operations."""

    code: int = JSONRPC_SERVER_ERROR
    message: str = "MCP client error"


def jsonrpc_error_response(request_id: Any, code: int, message: str) -> dict[str, Any]:
    """Create JSON-RPC error response."""
    return {
        "jsonrpc": "2.0",
        "id": request_id,
        "error": {"code": code, "message": message},
    }


# status -> (JSON-RPC code, message prefix); statuses not listed fall back to "HTTP error <status>"
_HTTP_STATUS_ERRORS: dict[int, tuple[int, str]] = {
    400: (JSONRPC_SERVER_ERROR, "Bad request"),
    401: (JSONRPC_SERVER_ERROR, "Authentication failed"),
    403: (JSONRPC_SERVER_ERROR, "Authentication failed"),
    404: (JSONRPC_METHOD_NOT_FOUND, "Endpoint not found"),
    405: (JSONRPC_METHOD_NOT_FOUND, "Method not allowed"),
}


def map_http_error(status_code: int, message: str) -> McpClientError:
    """Turn a non-2xx response from the server under test into an McpClientError.

    The status and the raw body stay available in ``data`` for check details.
    """
    data = {"original_message": message, "http_status": status_code}
    if status_code >= 500:
        code, prefix = JSONRPC_INTERNAL_ERROR, "Server error"
    else:
        code, prefix = _HTTP_STATUS_ERRORS.get(status_code, (JSONRPC_SERVER_ERROR, f"HTTP error {status_code}"))
    return McpClientError(code=code, message=f"{prefix}: {message}" if message else prefix, data=data)


def map_connection_error(error_message: str, url: str, is_timeout: bool = False) -> McpClientError:
    """Describe a failure to reach ``url`` by host and port."""
    data = {"url": url, "original_error": error_message}
    if is_timeout:
        return McpClientError(message=f"Request timeout connecting to {url}", data=data)

    parsed = urlparse(url)
    where = f"{parsed.hostname}:{parsed.port}" if parsed.port else parsed.hostname
    return McpClientError(message=f"Cannot reach server at {where}", data=data)
