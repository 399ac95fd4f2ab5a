"""MCP conformance harness - tests MCP clients and servers against the protocol."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("mcp-conformance")
except PackageNotFoundError:
    __version__ = "0.0.0.dev0"  # Fallback for editable installs without metadata

__all__ = ["__version__"]
