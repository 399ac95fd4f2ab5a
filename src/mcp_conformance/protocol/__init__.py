"""Protocol module - engine contract and the reference MCP server engine."""

from .engine import EngineFactory, ProtocolEngine, is_initialize_request
from .server import McpServer, Prompt, Tool, ToolContext

__all__ = [
    "EngineFactory",
    "McpServer",
    "Prompt",
    "ProtocolEngine",
    "Tool",
    "ToolContext",
    "is_initialize_request",
]
