"""Tools probes for MCP servers.

Each probe calls one of the well-known test tools a conformance server is
expected to expose (test_simple_text, test_image_content, ...).
"""

from typing import Any

from ...checks.ledger import CheckLedger
from ...client.session import McpClient
from ...probe.driver import ProbeDriver, evaluate_ordered
from ...types import SPEC_BASE_URL, SpecReference

TOOLS_LIST_REFERENCE = SpecReference(id="MCP-Tools-List", url=f"{SPEC_BASE_URL}/server/tools#listing-tools")
TOOLS_CALL_REFERENCE = SpecReference(id="MCP-Tools-Call", url=f"{SPEC_BASE_URL}/server/tools#calling-tools")

MIN_LOG_NOTIFICATIONS = 3
MIN_PROGRESS_NOTIFICATIONS = 3
PROGRESS_TOKEN = "progress-test-1"
AUDIO_MIME_TYPE = "audio/wav"


def _content(result: dict[str, Any]) -> Any:
    return result.get("content")


def _find(content: Any, content_type: str) -> dict[str, Any] | None:
    if not isinstance(content, list):
        return None
    for item in content:
        if isinstance(item, dict) and item.get("type") == content_type:
            return item
    return None


class ToolsListProbe(ProbeDriver):
    name = "tools-list"
    description = "Test listing available tools"
    check_id = "tools-list"
    check_name = "ToolsList"
    check_description = "Server lists available tools with valid structure"
    spec_references = (TOOLS_LIST_REFERENCE,)

    async def probe(self, client: McpClient, ledger: CheckLedger) -> None:
        result = await client.list_tools()
        tools = result.get("tools")

        errors: list[str] = []
        if tools is None:
            errors.append("Missing tools array")
        elif not isinstance(tools, list):
            errors.append("tools is not an array")
        else:
            for index, tool in enumerate(tools):
                if not tool.get("name"):
                    errors.append(f"Tool {index}: missing name")
                if not tool.get("description"):
                    errors.append(f"Tool {index}: missing description")
                if not tool.get("inputSchema"):
                    errors.append(f"Tool {index}: missing inputSchema")

        tools = tools if isinstance(tools, list) else []
        ledger.append(
            self.result(
                errors,
                details={"toolCount": len(tools), "tools": [t.get("name") for t in tools]},
            )
        )


class ToolsCallSimpleTextProbe(ProbeDriver):
    name = "tools-call-simple-text"
    description = "Test calling a tool that returns simple text"
    check_id = "tools-call-simple-text"
    check_name = "ToolsCallSimpleText"
    check_description = "Tool returns simple text content"
    spec_references = (TOOLS_CALL_REFERENCE,)

    async def probe(self, client: McpClient, ledger: CheckLedger) -> None:
        result = await client.call_tool("test_simple_text")
        content = _content(result)

        errors: list[str] = []
        if content is None:
            errors.append("Missing content array")
        elif not isinstance(content, list):
            errors.append("content is not an array")
        elif not content:
            errors.append("content array is empty")

        text = _find(content, "text")
        if text is None:
            errors.append("No text content found")
        elif not text.get("text"):
            errors.append("Text content missing text field")

        ledger.append(self.result(errors, details={"result": result}))


class ToolsCallImageProbe(ProbeDriver):
    name = "tools-call-image"
    description = "Test calling a tool that returns image content"
    check_id = "tools-call-image"
    check_name = "ToolsCallImage"
    check_description = "Tool returns image content"
    spec_references = (TOOLS_CALL_REFERENCE,)

    async def probe(self, client: McpClient, ledger: CheckLedger) -> None:
        result = await client.call_tool("test_image_content")
        content = _content(result)

        errors: list[str] = []
        if content is None:
            errors.append("Missing content array")

        image = _find(content, "image")
        if image is None:
            errors.append("No image content found")
        else:
            if not image.get("data"):
                errors.append("Image content missing data field")
            if not image.get("mimeType"):
                errors.append("Image content missing mimeType")

        image = image or {}
        ledger.append(
            self.result(errors, details={"mimeType": image.get("mimeType"), "hasData": bool(image.get("data"))})
        )


class ToolsCallErrorProbe(ProbeDriver):
    """A failing tool must report isError in its result, not a JSON-RPC error."""

    name = "tools-call-error"
    description = "Test tool error reporting"
    check_id = "tools-call-error"
    check_name = "ToolsCallError"
    check_description = "Tool returns error correctly"
    spec_references = (SpecReference(id="MCP-Error-Handling", url=f"{SPEC_BASE_URL}/basic/lifecycle"),)

    async def probe(self, client: McpClient, ledger: CheckLedger) -> None:
        result = await client.call_tool("test_error_handling")
        content = _content(result)

        errors: list[str] = []
        if result.get("isError") is not True:
            errors.append("Tool did not return isError: true")
        elif not (isinstance(content, list) and content and content[0].get("text")):
            errors.append("Error result missing error message")

        ledger.append(self.result(errors, details={"result": result}))


class ToolsCallWithLoggingProbe(ProbeDriver):
    name = "tools-call-with-logging"
    description = "Test tool that sends log messages during execution"
    check_id = "tools-call-with-logging"
    check_name = "ToolsCallWithLogging"
    check_description = "Tool sends log messages during execution"
    spec_references = (SpecReference(id="MCP-Logging", url=f"{SPEC_BASE_URL}/server/utilities/logging"),)
    expects_notifications = True

    async def probe(self, client: McpClient, ledger: CheckLedger) -> None:
        await client.call_tool("test_tool_with_logging")
        logs = await self.collect("log", MIN_LOG_NOTIFICATIONS)

        errors: list[str] = []
        if not logs:
            errors.append("No log notifications received")
        elif len(logs) < MIN_LOG_NOTIFICATIONS:
            errors.append(f"Expected at least {MIN_LOG_NOTIFICATIONS} log messages, got {len(logs)}")

        ledger.append(self.result(errors, details={"logCount": len(logs), "logs": logs}))


class ToolsCallWithProgressProbe(ProbeDriver):
    name = "tools-call-with-progress"
    description = "Test tool that reports progress notifications"
    check_id = "tools-call-with-progress"
    check_name = "ToolsCallWithProgress"
    check_description = "Tool reports progress notifications"
    spec_references = (SpecReference(id="MCP-Progress", url=f"{SPEC_BASE_URL}/server/utilities/progress"),)
    expects_notifications = True

    async def probe(self, client: McpClient, ledger: CheckLedger) -> None:
        result = await client.call_tool("test_tool_with_progress", progress_token=PROGRESS_TOKEN)
        updates = [
            params
            for params in await self.collect("progress", MIN_PROGRESS_NOTIFICATIONS)
            if params.get("progressToken") == PROGRESS_TOKEN
        ]

        errors = evaluate_ordered([u.get("progress", 0) for u in updates], MIN_PROGRESS_NOTIFICATIONS)
        ledger.append(
            self.result(
                errors,
                details={"progressCount": len(updates), "progressNotifications": updates, "result": result},
            )
        )


class ToolsCallSamplingProbe(ProbeDriver):
    """The server must ask the client for an LLM completion while running the tool."""

    name = "tools-call-sampling"
    description = "Test tool that requests LLM sampling from client"
    check_id = "tools-call-sampling"
    check_name = "ToolsCallSampling"
    check_description = "Tool requests LLM sampling from client"
    spec_references = (SpecReference(id="MCP-Sampling", url=f"{SPEC_BASE_URL}/client/sampling"),)
    requires_stream = True

    request_check_id = "tools-call-sampling-request"
    request_check_name = "ToolsCallSamplingRequest"
    request_check_description = "Sampling request carries messages and maxTokens"

    @property
    def expected_check_ids(self) -> tuple[str, ...]:
        return (self.check_id, self.request_check_id)

    async def probe(self, client: McpClient, ledger: CheckLedger) -> None:
        requests: list[dict[str, Any]] = []

        async def handle_sampling(params: dict[str, Any]) -> dict[str, Any]:
            requests.append(params)
            return {
                "role": "assistant",
                "content": {"type": "text", "text": "This is a test response from the client"},
                "model": "test-model",
                "stopReason": "endTurn",
            }

        client.on_request("sampling/createMessage", handle_sampling)
        result = await client.call_tool("test_sampling", {"prompt": "Test prompt for sampling"})

        errors: list[str] = []
        if not requests:
            errors.append("Server did not request sampling from client")
        if not _content(result):
            errors.append("Tool did not return content")
        ledger.append(self.result(errors, details={"samplingRequested": bool(requests), "result": result}))

        if not requests:
            ledger.append(
                self.skipped(
                    self.request_check_id,
                    self.request_check_name,
                    self.request_check_description,
                    reason="Server did not request sampling",
                )
            )
            return

        request = requests[0]
        request_errors: list[str] = []
        if not isinstance(request.get("messages"), list) or not request["messages"]:
            request_errors.append("Sampling request missing messages")
        if not isinstance(request.get("maxTokens"), int):
            request_errors.append("Sampling request missing maxTokens")
        ledger.append(
            self.result(
                request_errors,
                details={"request": request},
                check_id=self.request_check_id,
                name=self.request_check_name,
                description=self.request_check_description,
            )
        )


class ToolsCallMixedContentProbe(ProbeDriver):
    name = "tools-call-mixed-content"
    description = "Test tool returning multiple content types"
    check_id = "tools-call-mixed-content"
    check_name = "ToolsCallMixedContent"
    check_description = "Tool returns multiple content types"
    spec_references = (TOOLS_CALL_REFERENCE,)

    async def probe(self, client: McpClient, ledger: CheckLedger) -> None:
        result = await client.call_tool("test_multiple_content_types")
        content = _content(result)

        errors: list[str] = []
        if not content:
            errors.append("Missing content array")
        elif len(content) < 2:
            errors.append("Expected multiple content items")
        for content_type in ("text", "image", "resource"):
            if _find(content, content_type) is None:
                errors.append(f"Missing {content_type} content")

        items = content if isinstance(content, list) else []
        ledger.append(
            self.result(
                errors,
                details={"contentCount": len(items), "contentTypes": [c.get("type") for c in items]},
            )
        )


class ToolsCallAudioProbe(ProbeDriver):
    name = "tools-call-audio"
    description = "Test calling a tool that returns audio content"
    check_id = "tools-call-audio"
    check_name = "ToolsCallAudio"
    check_description = "Tool returns audio content"
    spec_references = (TOOLS_CALL_REFERENCE,)

    async def probe(self, client: McpClient, ledger: CheckLedger) -> None:
        result = await client.call_tool("test_audio_content")
        content = _content(result)

        errors: list[str] = []
        if content is None:
            errors.append("Missing content array")
        elif not isinstance(content, list):
            errors.append("content is not an array")
        elif not content:
            errors.append("content array is empty")

        audio = _find(content, "audio")
        if audio is None:
            errors.append("No audio content found")
        else:
            if not audio.get("data"):
                errors.append("Audio content missing data field")
            if not audio.get("mimeType"):
                errors.append("Audio content missing mimeType field")
            elif audio.get("mimeType") != AUDIO_MIME_TYPE:
                errors.append(f"Expected mimeType '{AUDIO_MIME_TYPE}', got '{audio.get('mimeType')}'")

        audio = audio or {}
        ledger.append(
            self.result(
                errors,
                details={"hasAudioContent": bool(audio), "audioDataLength": len(audio.get("data") or "")},
            )
        )


class ToolsCallEmbeddedResourceProbe(ProbeDriver):
    name = "tools-call-embedded-resource"
    description = "Test calling a tool that returns embedded resource content"
    check_id = "tools-call-embedded-resource"
    check_name = "ToolsCallEmbeddedResource"
    check_description = "Tool returns embedded resource content"
    spec_references = (TOOLS_CALL_REFERENCE,)

    async def probe(self, client: McpClient, ledger: CheckLedger) -> None:
        result = await client.call_tool("test_embedded_resource")
        content = _content(result)

        errors: list[str] = []
        if content is None:
            errors.append("Missing content array")
        elif not isinstance(content, list):
            errors.append("content is not an array")
        elif not content:
            errors.append("content array is empty")

        item = _find(content, "resource")
        resource = (item or {}).get("resource")
        if item is None:
            errors.append("No resource content found")
        elif not isinstance(resource, dict):
            errors.append("Resource content missing resource field")
        else:
            if not resource.get("uri"):
                errors.append("Resource missing uri field")
            if not resource.get("mimeType"):
                errors.append("Resource missing mimeType field")
            if not resource.get("text") and not resource.get("blob"):
                errors.append("Resource missing both text and blob fields")

        uri = resource.get("uri") if isinstance(resource, dict) else None
        ledger.append(self.result(errors, details={"hasResourceContent": item is not None, "resourceUri": uri}))


class ToolsCallElicitationProbe(ProbeDriver):
    """The server must ask the client for user input while running the tool."""

    name = "tools-call-elicitation"
    description = "Test tool that requests user input (elicitation) from client"
    check_id = "tools-call-elicitation"
    check_name = "ToolsCallElicitation"
    check_description = "Tool requests user input from client"
    spec_references = (
        SpecReference(id="MCP-Elicitation", url=f"{SPEC_BASE_URL}/server/utilities/elicitation"),
    )
    requires_stream = True

    async def probe(self, client: McpClient, ledger: CheckLedger) -> None:
        requests: list[dict[str, Any]] = []

        async def handle_elicitation(params: dict[str, Any]) -> dict[str, Any]:
            requests.append(params)
            return {"action": "accept", "content": {"username": "testuser", "email": "test@example.com"}}

        client.on_request("elicitation/create", handle_elicitation)
        result = await client.call_tool("test_elicitation", {"message": "Please provide your information"})

        errors: list[str] = []
        if not requests:
            errors.append("Server did not request elicitation from client")
        if not _content(result):
            errors.append("Tool did not return content")
        ledger.append(self.result(errors, details={"elicitationRequested": bool(requests), "result": result}))
