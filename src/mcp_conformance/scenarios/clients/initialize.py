"""Initialize scenario - validates the client's initialize request."""

from typing import Any

from ...checks.client import client_initialization_check
from ...protocol.server import McpServer
from ..base import Scenario


class InitializeScenario(Scenario):
    name = "initialize"
    description = "Tests MCP client initialization handshake"
    expected_check_ids = ("client-initialization",)

    def create_engine(self) -> McpServer:
        server = McpServer("test-server")
        server.on_initialize = self._record_initialize
        return server

    def _record_initialize(self, params: dict[str, Any]) -> None:
        self.checks.append(client_initialization_check(params))
