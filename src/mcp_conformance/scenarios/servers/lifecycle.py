"""Lifecycle probes for MCP servers."""

from ...checks.ledger import CheckLedger
from ...checks.server import server_initialization_check
from ...client.session import McpClient
from ...probe.driver import ProbeDriver
from ...types import SPEC_BASE_URL, Check, CheckStatus, SpecReference


class ServerInitializeProbe(ProbeDriver):
    """Sends a raw initialize request and validates the full JSON-RPC response."""

    name = "server-initialize"
    description = "Acts as MCP client to test external server initialization"
    check_id = "server-initialize-request"
    check_name = "ServerInitializeRequest"
    check_description = "Tests server response to initialize request"
    spec_references = (
        SpecReference(id="MCP-Initialize", url=f"{SPEC_BASE_URL}/basic/lifecycle#initialization"),
    )
    performs_handshake = False

    @property
    def expected_check_ids(self) -> tuple[str, ...]:
        return ("mcp-server-initialization",)

    async def probe(self, client: McpClient, ledger: CheckLedger) -> None:
        response = await client.send_message(
            {
                "jsonrpc": "2.0",
                "id": 1,
                "method": "initialize",
                "params": {
                    "protocolVersion": client.protocol_version,
                    "capabilities": {},
                    "clientInfo": client.client_info,
                },
            }
        )
        ledger.append(server_initialization_check(response, client.protocol_version))

    def failure(self, error: BaseException) -> Check:
        return Check(
            id=self.check_id,
            name=self.check_name,
            description=self.check_description,
            status=CheckStatus.FAILURE,
            spec_references=self.spec_references,
            error_message=f"Failed to send initialize request: {error}",
            details={"error": str(error), "serverUrl": self.server_url},
        )
