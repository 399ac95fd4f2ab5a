"""Tools call scenario - the client must call add_numbers with numeric arguments."""

from typing import Any

from ...protocol.server import McpServer, ToolContext
from ...types import SPEC_BASE_URL, Check, SpecReference
from ..base import Scenario

ADD_NUMBERS_SCHEMA = {
    "type": "object",
    "properties": {
        "a": {"type": "number", "description": "First number"},
        "b": {"type": "number", "description": "Second number"},
    },
    "required": ["a", "b"],
}


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


class ToolsCallScenario(Scenario):
    name = "tools-call"
    description = "Tests calling tools with various parameter types"
    expected_check_ids = ("tool-add-numbers",)

    def create_engine(self) -> McpServer:
        server = McpServer("add-numbers-server")
        server.add_tool("add_numbers", "Add two numbers together", self._add_numbers, ADD_NUMBERS_SCHEMA)
        return server

    async def _add_numbers(self, arguments: dict[str, Any], context: ToolContext) -> dict[str, Any]:
        a = arguments.get("a")
        b = arguments.get("b")

        errors: list[str] = []
        if not _is_number(a):
            errors.append(f"Argument 'a' should be a number, got {type(a).__name__}")
        if not _is_number(b):
            errors.append(f"Argument 'b' should be a number, got {type(b).__name__}")

        self.checks.append(
            Check.from_errors(
                id="tool-add-numbers",
                name="ToolAddNumbers",
                description="Validates that the add_numbers tool is called with numeric arguments",
                errors=errors,
                spec_references=(
                    SpecReference(id="MCP-Tools-Call", url=f"{SPEC_BASE_URL}/server/tools#calling-tools"),
                ),
                details={"a": a, "b": b, "result": a + b if not errors else None},
            )
        )

        if errors:
            raise ValueError("; ".join(errors))
        return {"content": [{"type": "text", "text": f"The sum of {a} and {b} is {a + b}"}]}
