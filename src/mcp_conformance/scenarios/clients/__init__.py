"""Server-role scenarios: endpoints served to an MCP client under test."""

from .elicitation_defaults import ElicitationClientDefaultsScenario
from .initialize import InitializeScenario
from .tools_call import ToolsCallScenario

ALL_SCENARIOS = (
    InitializeScenario,
    ToolsCallScenario,
    ElicitationClientDefaultsScenario,
)

__all__ = [
    "ALL_SCENARIOS",
    "ElicitationClientDefaultsScenario",
    "InitializeScenario",
    "ToolsCallScenario",
]
