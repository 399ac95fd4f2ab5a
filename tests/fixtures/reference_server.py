"""Reference MCP server exposing the well-known conformance test tools.

Used as the server under test for probe integration tests.
"""

import json
from typing import Any, Sequence

from mcp_conformance.protocol.server import McpServer, ToolContext

# 1x1 transparent PNG
PNG_PIXEL = "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAQAAAC1HAwCAAAAC0lEQVR42mNkYAAAAAYAAjCB0C8AAAAASUVORK5CYII="

# Header-only 8 kHz mono WAV
WAV_SILENCE = "UklGRiQAAABXQVZFZm10IBAAAAABAAEAQB8AAEAfAAABAAgAZGF0YQAAAAA="

EMBEDDED_RESOURCE = {
    "uri": "test://embedded-resource",
    "mimeType": "text/plain",
    "text": "This is an embedded resource content.",
}

JSON_SCHEMA_2020_12 = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "type": "object",
    "$defs": {
        "address": {
            "type": "object",
            "properties": {"street": {"type": "string"}, "city": {"type": "string"}},
        }
    },
    "properties": {"name": {"type": "string"}, "address": {"$ref": "#/$defs/address"}},
    "additionalProperties": False,
}


async def echo_arguments(arguments: dict[str, Any], context: ToolContext) -> dict[str, Any]:
    return {"content": [{"type": "text", "text": json.dumps(arguments)}]}


def create_reference_server(
    progress_values: Sequence[float] = (10, 50, 100),
    log_count: int = 3,
    request_sampling: bool = True,
    json_schema_tool: bool = True,
) -> McpServer:
    """Build an McpServer with the conformance test tools and prompts.

    Args:
        progress_values: Progress values reported by test_tool_with_progress
        log_count: Log notifications sent by test_tool_with_logging
        request_sampling: Whether test_sampling actually asks the client
        json_schema_tool: Whether json_schema_2020_12_tool is exposed
    """
    server = McpServer("reference-server", instructions="Reference server for conformance tests")

    @server.tool("test_simple_text", "Returns simple text content")
    async def simple_text(arguments: dict[str, Any], context: ToolContext) -> dict[str, Any]:
        return {"content": [{"type": "text", "text": "This is a simple text response for testing."}]}

    @server.tool("test_image_content", "Returns image content")
    async def image_content(arguments: dict[str, Any], context: ToolContext) -> dict[str, Any]:
        return {"content": [{"type": "image", "data": PNG_PIXEL, "mimeType": "image/png"}]}

    @server.tool("test_error_handling", "Always fails")
    async def error_handling(arguments: dict[str, Any], context: ToolContext) -> dict[str, Any]:
        raise RuntimeError("This tool intentionally returns an error for testing")

    @server.tool("test_tool_with_logging", "Sends log messages while running")
    async def with_logging(arguments: dict[str, Any], context: ToolContext) -> dict[str, Any]:
        for index in range(log_count):
            await context.log("info", f"Tool execution step {index + 1}", logger_name="test")
        return {"content": [{"type": "text", "text": f"Sent {log_count} log messages"}]}

    @server.tool("test_tool_with_progress", "Reports progress while running")
    async def with_progress(arguments: dict[str, Any], context: ToolContext) -> dict[str, Any]:
        for value in progress_values:
            await context.progress(value, total=100)
        return {"content": [{"type": "text", "text": "Progress complete"}]}

    @server.tool("test_sampling", "Requests LLM sampling from the client")
    async def sampling(arguments: dict[str, Any], context: ToolContext) -> dict[str, Any]:
        if not request_sampling:
            return {"content": [{"type": "text", "text": "Sampling skipped"}]}
        result = await context.request(
            "sampling/createMessage",
            {
                "messages": [
                    {"role": "user", "content": {"type": "text", "text": arguments.get("prompt", "")}}
                ],
                "maxTokens": 100,
            },
        )
        text = (result.get("content") or {}).get("text", "")
        return {"content": [{"type": "text", "text": f"LLM response: {text}"}]}


    @server.tool("test_multiple_content_types", "Returns text, image and resource content")
    async def multiple_content_types(arguments: dict[str, Any], context: ToolContext) -> dict[str, Any]:
        return {
            "content": [
                {"type": "text", "text": "Multiple content types test:"},
                {"type": "image", "data": PNG_PIXEL, "mimeType": "image/png"},
                {"type": "resource", "resource": EMBEDDED_RESOURCE},
            ]
        }

    @server.tool("test_audio_content", "Returns audio content")
    async def audio_content(arguments: dict[str, Any], context: ToolContext) -> dict[str, Any]:
        return {"content": [{"type": "audio", "data": WAV_SILENCE, "mimeType": "audio/wav"}]}

    @server.tool("test_embedded_resource", "Returns an embedded resource")
    async def embedded_resource(arguments: dict[str, Any], context: ToolContext) -> dict[str, Any]:
        return {"content": [{"type": "resource", "resource": EMBEDDED_RESOURCE}]}

    @server.tool("test_elicitation", "Requests user input from the client")
    async def elicitation(arguments: dict[str, Any], context: ToolContext) -> dict[str, Any]:
        result = await context.request(
            "elicitation/create",
            {
                "message": arguments.get("message", "Please provide your information"),
                "requestedSchema": {
                    "type": "object",
                    "properties": {"username": {"type": "string"}, "email": {"type": "string"}},
                    "required": ["username", "email"],
                },
            },
        )
        return {"content": [{"type": "text", "text": f"User response: {json.dumps(result)}"}]}

    if json_schema_tool:
        server.add_tool(
            "json_schema_2020_12_tool",
            "Tool with JSON Schema 2020-12 features",
            echo_arguments,
            JSON_SCHEMA_2020_12,
        )

    async def simple_prompt(arguments: dict[str, Any]) -> dict[str, Any]:
        return {
            "messages": [
                {"role": "user", "content": {"type": "text", "text": "This is a simple prompt for testing."}}
            ]
        }

    async def prompt_with_arguments(arguments: dict[str, Any]) -> dict[str, Any]:
        text = f"Prompt with arguments: arg1='{arguments.get('arg1')}', arg2='{arguments.get('arg2')}'"
        return {"messages": [{"role": "user", "content": {"type": "text", "text": text}}]}


    async def prompt_with_embedded_resource(arguments: dict[str, Any]) -> dict[str, Any]:
        resource = dict(EMBEDDED_RESOURCE, uri=arguments.get("resourceUri", EMBEDDED_RESOURCE["uri"]))
        return {
            "messages": [
                {"role": "user", "content": {"type": "resource", "resource": resource}},
                {"role": "user", "content": {"type": "text", "text": "Please process the embedded resource above."}},
            ]
        }

    async def prompt_with_image(arguments: dict[str, Any]) -> dict[str, Any]:
        return {
            "messages": [
                {"role": "user", "content": {"type": "image", "data": PNG_PIXEL, "mimeType": "image/png"}},
                {"role": "user", "content": {"type": "text", "text": "Please analyze the image above."}},
            ]
        }

    async def complete(params: dict[str, Any]) -> dict[str, Any]:
        prefix = (params.get("argument") or {}).get("value", "")
        values = [f"{prefix}-one", f"{prefix}-two"]
        return {"completion": {"values": values, "total": len(values), "hasMore": False}}

    server.add_prompt("test_simple_prompt", "A simple prompt without arguments", simple_prompt)
    server.add_prompt(
        "test_prompt_with_arguments",
        "A prompt with required arguments",
        prompt_with_arguments,
        arguments=[
            {"name": "arg1", "description": "First test argument", "required": True},
            {"name": "arg2", "description": "Second test argument", "required": True},
        ],
    )
    server.add_prompt(
        "test_prompt_with_embedded_resource",
        "A prompt that embeds a resource",
        prompt_with_embedded_resource,
        arguments=[{"name": "resourceUri", "description": "URI of the resource to embed", "required": True}],
    )
    server.add_prompt("test_prompt_with_image", "A prompt with image content", prompt_with_image)
    server.set_completion_handler(complete)
    return server
