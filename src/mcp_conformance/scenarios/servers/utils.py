"""Utility probes for MCP servers (logging level, completion)."""

from ...checks.ledger import CheckLedger
from ...client.session import McpClient
from ...probe.driver import ProbeDriver
from ...types import SPEC_BASE_URL, SpecReference


class LoggingSetLevelProbe(ProbeDriver):
    name = "logging-set-level"
    description = "Test setting logging level"
    check_id = "logging-set-level"
    check_name = "LoggingSetLevel"
    check_description = "Server accepts logging level setting"
    spec_references = (SpecReference(id="MCP-Logging", url=f"{SPEC_BASE_URL}/server/utilities/logging"),)

    async def probe(self, client: McpClient, ledger: CheckLedger) -> None:
        result = await client.set_logging_level("info")

        errors: list[str] = []
        if result:
            errors.append("Expected empty object {} response")

        ledger.append(self.result(errors, details={"result": result}))


class CompletionCompleteProbe(ProbeDriver):
    name = "completion-complete"
    description = "Test completion endpoint"
    check_id = "completion-complete"
    check_name = "CompletionComplete"
    check_description = "Server responds to completion requests"
    spec_references = (
        SpecReference(id="MCP-Completion", url=f"{SPEC_BASE_URL}/server/utilities/completion"),
    )

    async def probe(self, client: McpClient, ledger: CheckLedger) -> None:
        result = await client.complete(
            ref={"type": "ref/prompt", "name": "test_prompt_with_arguments"},
            argument={"name": "arg1", "value": "test"},
        )
        completion = result.get("completion")

        errors: list[str] = []
        if not isinstance(completion, dict):
            errors.append("Missing completion field")
        elif "values" not in completion:
            errors.append("Missing values array in completion")
        elif not isinstance(completion["values"], list):
            errors.append("completion.values is not an array")

        ledger.append(self.result(errors, details={"result": result}))
