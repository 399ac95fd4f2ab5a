"""Checks evaluated against requests sent by a client under test."""

from typing import Any

from ..types import DEFAULT_SPEC_VERSION, SPEC_BASE_URL, Check, SpecReference

INITIALIZATION_REFERENCE = SpecReference(
    id="MCP-Initialize", url=f"{SPEC_BASE_URL}/basic/lifecycle#initialization"
)


def client_initialization_check(
    initialize_params: Any,
    expected_spec_version: str = DEFAULT_SPEC_VERSION,
) -> Check:
    """Validate the params of a client's ``initialize`` request.

    Args:
        initialize_params: ``params`` object of the initialize request
        expected_spec_version: Protocol version the client must offer

    Returns:
        ``client-initialization`` check
    """
    params = initialize_params if isinstance(initialize_params, dict) else {}
    protocol_version = params.get("protocolVersion")
    client_info = params.get("clientInfo")
    client_info = client_info if isinstance(client_info, dict) else {}

    errors: list[str] = []
    if not protocol_version:
        errors.append("Protocol version not provided")
    elif protocol_version != expected_spec_version:
        errors.append(f"Version mismatch: expected {expected_spec_version}, got {protocol_version}")
    if not client_info.get("name"):
        errors.append("Client name missing")
    if not client_info.get("version"):
        errors.append("Client version missing")

    return Check.from_errors(
        id="client-initialization",
        name="MCPClientInitialization",
        description="Validates that MCP client properly initializes with server",
        errors=errors,
        spec_references=(INITIALIZATION_REFERENCE,),
        details={
            "protocolVersionSent": protocol_version,
            "expectedSpecVersion": expected_spec_version,
            "clientName": client_info.get("name"),
            "clientVersion": client_info.get("version"),
        },
        include_logs=True,
    )
