"""Checks evaluated against responses returned by a server under test."""

from typing import Any

from ..types import DEFAULT_SPEC_VERSION, SPEC_BASE_URL, Check, SpecReference

LIFECYCLE_REFERENCE = SpecReference(id="MCP-Lifecycle", url=f"{SPEC_BASE_URL}/basic/lifecycle")


def server_initialization_check(
    initialize_response: Any,
    expected_spec_version: str = DEFAULT_SPEC_VERSION,
) -> Check:
    """Validate a server's JSON-RPC response to ``initialize``.

    Args:
        initialize_response: Full JSON-RPC response object
        expected_spec_version: Protocol version the server must answer with

    Returns:
        ``mcp-server-initialization`` check
    """
    response = initialize_response if isinstance(initialize_response, dict) else {}
    result = response.get("result")
    result = result if isinstance(result, dict) else {}
    protocol_version = result.get("protocolVersion")
    server_info = result.get("serverInfo")
    server_info = server_info if isinstance(server_info, dict) else None

    errors: list[str] = []
    if not response.get("jsonrpc"):
        errors.append("Missing jsonrpc field")
    if response.get("id") is None:
        errors.append("Missing id field")
    if "result" not in response:
        errors.append("Missing result field")
    if not protocol_version:
        errors.append("Missing protocolVersion in result")
    if protocol_version != expected_spec_version:
        errors.append(
            f"Protocol version mismatch: expected {expected_spec_version}, got {protocol_version}"
        )
    if server_info is None:
        errors.append("Missing serverInfo in result")
    if not (server_info or {}).get("name"):
        errors.append("Missing server name in serverInfo")
    if not (server_info or {}).get("version"):
        errors.append("Missing server version in serverInfo")
    if "capabilities" not in result:
        errors.append("Missing capabilities in result")

    return Check.from_errors(
        id="mcp-server-initialization",
        name="MCPServerInitialization",
        description="Validates that MCP server properly responds to initialize request",
        errors=errors,
        spec_references=(LIFECYCLE_REFERENCE,),
        details={"expectedSpecVersion": expected_spec_version, "response": initialize_response},
        include_logs=True,
    )
