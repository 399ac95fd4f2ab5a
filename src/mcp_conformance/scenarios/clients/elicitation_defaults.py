"""SEP-1034 elicitation defaults scenario.

The tool issues elicitation/create with a schema whose optional fields all
carry defaults. A conforming client fills every omitted field with its
default before answering.
"""

import json
from typing import Any

from ...errors import ProtocolError
from ...protocol.server import McpServer, ToolContext
from ...types import Check, CheckStatus, SpecReference
from ..base import Scenario

SEP_1034_REFERENCE = SpecReference(
    id="SEP-1034",
    url="https://github.com/modelcontextprotocol/modelcontextprotocol/issues/1034",
)

TOOL_NAME = "test_client_elicitation_defaults"
GENERAL_CHECK_ID = "client-elicitation-sep1034-general"

REQUESTED_SCHEMA = {
    "type": "object",
    "properties": {
        "name": {"type": "string", "description": "User name", "default": "John Doe"},
        "age": {"type": "integer", "description": "User age", "default": 30},
        "score": {"type": "number", "description": "User score", "default": 95.5},
        "status": {
            "type": "string",
            "description": "User status",
            "enum": ["active", "inactive", "pending"],
            "default": "active",
        },
        "verified": {"type": "boolean", "description": "Verification status", "default": True},
    },
    "required": [],
}

# (kind, field, JSON type)
DEFAULT_FIELDS = (
    ("string", "name", "string"),
    ("integer", "age", "number"),
    ("number", "score", "number"),
    ("enum", "status", "string"),
    ("boolean", "verified", "boolean"),
)


def _json_type(value: Any) -> str:
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if value is None:
        return "null"
    return "object"


def validate_default(kind: str, field: str, json_type: str, content: dict[str, Any]) -> list[str]:
    """Validate that ``field`` was filled with a value of the right type."""
    schema = REQUESTED_SCHEMA["properties"][field]
    default = schema["default"]
    if field not in content:
        return [f'Field "{field}" missing - should have default {json.dumps(default)}']

    value = content[field]
    if _json_type(value) != json_type:
        return [f'Expected {json_type} for "{field}", got {_json_type(value)}']
    if kind == "enum" and value not in schema["enum"]:
        return [f'Value "{value}" is not a valid enum member']
    return []


def default_check(kind: str, field: str, errors: list[str], received: Any) -> Check:
    title = kind.capitalize()
    return Check.from_errors(
        id=f"client-elicitation-sep1034-{kind}-default",
        name=f"ClientElicitationSEP1034{title}Default",
        description=f"Client applies {kind} default value for elicitation",
        errors=errors,
        spec_references=(SEP_1034_REFERENCE,),
        details={
            "field": field,
            "expectedDefault": REQUESTED_SCHEMA["properties"][field]["default"],
            "receivedValue": received,
        },
    )


class ElicitationClientDefaultsScenario(Scenario):
    name = "elicitation-sep1034-client-defaults"
    description = "Tests client applies default values for omitted elicitation fields (SEP-1034)"
    expected_check_ids = tuple(f"client-elicitation-sep1034-{kind}-default" for kind, *_ in DEFAULT_FIELDS)

    def create_engine(self) -> McpServer:
        server = McpServer("elicitation-defaults-test-server")
        server.add_tool(
            TOOL_NAME,
            "Tests that client applies defaults for omitted elicitation fields",
            self._test_defaults,
        )
        return server

    def _general_failure(self, description: str, error_message: str) -> None:
        self.checks.append(
            Check(
                id=GENERAL_CHECK_ID,
                name="ClientElicitationSEP1034General",
                description=description,
                status=CheckStatus.FAILURE,
                spec_references=(SEP_1034_REFERENCE,),
                error_message=error_message,
            )
        )

    async def _test_defaults(self, arguments: dict[str, Any], context: ToolContext) -> dict[str, Any]:
        try:
            result = await context.request(
                "elicitation/create",
                {
                    "message": "Test client default value handling - please accept with defaults",
                    "requestedSchema": REQUESTED_SCHEMA,
                },
            )
        except ProtocolError as e:
            self._general_failure("Client handles elicitation with defaults", f"Elicitation failed: {e.message}")
            return {"content": [{"type": "text", "text": f"Elicitation error: {e.message}"}]}

        action = result.get("action")
        if action != "accept":
            self._general_failure(
                "Client accepts elicitation request", f"Expected action 'accept', got '{action}'"
            )
            return {"content": [{"type": "text", "text": "Elicitation was not accepted"}]}

        content = result.get("content") or {}
        for kind, field, json_type in DEFAULT_FIELDS:
            errors = validate_default(kind, field, json_type, content)
            self.checks.append(default_check(kind, field, errors, content.get(field)))

        return {"content": [{"type": "text", "text": f"Elicitation completed: {json.dumps(content)}"}]}
