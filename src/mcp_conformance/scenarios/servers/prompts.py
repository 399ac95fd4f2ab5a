"""Prompts probes for MCP servers."""

import json
from typing import Any

from ...checks.ledger import CheckLedger
from ...client.session import McpClient
from ...probe.driver import ProbeDriver
from ...types import SPEC_BASE_URL, SpecReference

PROMPTS_GET_REFERENCE = SpecReference(id="MCP-Prompts-Get", url=f"{SPEC_BASE_URL}/server/prompts#getting-prompts")


def _messages(result: dict[str, Any]) -> list[dict[str, Any]] | None:
    messages = result.get("messages")
    return messages if isinstance(messages, list) else None


def _contents(messages: list[dict[str, Any]] | None) -> list[dict[str, Any]]:
    """Content blocks of every message, skipping malformed ones."""
    return [m["content"] for m in messages or [] if isinstance(m.get("content"), dict)]


class PromptsListProbe(ProbeDriver):
    name = "prompts-list"
    description = "Test listing available prompts"
    check_id = "prompts-list"
    check_name = "PromptsList"
    check_description = "Server lists available prompts with valid structure"
    spec_references = (
        SpecReference(id="MCP-Prompts-List", url=f"{SPEC_BASE_URL}/server/prompts#listing-prompts"),
    )

    async def probe(self, client: McpClient, ledger: CheckLedger) -> None:
        result = await client.list_prompts()
        prompts = result.get("prompts")

        errors: list[str] = []
        if prompts is None:
            errors.append("Missing prompts array")
        elif not isinstance(prompts, list):
            errors.append("prompts is not an array")
        else:
            for index, prompt in enumerate(prompts):
                if not prompt.get("name"):
                    errors.append(f"Prompt {index}: missing name")
                if not prompt.get("description"):
                    errors.append(f"Prompt {index}: missing description")

        prompts = prompts if isinstance(prompts, list) else []
        ledger.append(
            self.result(
                errors,
                details={"promptCount": len(prompts), "prompts": [p.get("name") for p in prompts]},
            )
        )


class PromptsGetSimpleProbe(ProbeDriver):
    name = "prompts-get-simple"
    description = "Test getting a simple prompt without arguments"
    check_id = "prompts-get-simple"
    check_name = "PromptsGetSimple"
    check_description = "Get simple prompt successfully"
    spec_references = (PROMPTS_GET_REFERENCE,)

    async def probe(self, client: McpClient, ledger: CheckLedger) -> None:
        result = await client.get_prompt("test_simple_prompt")
        messages = result.get("messages")

        errors: list[str] = []
        if messages is None:
            errors.append("Missing messages array")
        elif not isinstance(messages, list):
            errors.append("messages is not an array")
        elif not messages:
            errors.append("messages array is empty")
        else:
            for index, message in enumerate(messages):
                if not message.get("role"):
                    errors.append(f"Message {index}: missing role")
                if not message.get("content"):
                    errors.append(f"Message {index}: missing content")

        count = len(messages) if isinstance(messages, list) else 0
        ledger.append(self.result(errors, details={"messageCount": count}))


class PromptsGetWithArgsProbe(ProbeDriver):
    name = "prompts-get-with-args"
    description = "Test parameterized prompt"
    check_id = "prompts-get-with-args"
    check_name = "PromptsGetWithArgs"
    check_description = "Get parameterized prompt with argument substitution"
    spec_references = (PROMPTS_GET_REFERENCE,)

    async def probe(self, client: McpClient, ledger: CheckLedger) -> None:
        arguments = {"arg1": "testValue1", "arg2": "testValue2"}
        result = await client.get_prompt("test_prompt_with_arguments", arguments)
        messages = _messages(result)

        errors: list[str] = []
        if messages is None:
            errors.append("Missing messages array")
        elif not messages:
            errors.append("messages array is empty")

        rendered = json.dumps(messages or [])
        for name, value in arguments.items():
            if value not in rendered:
                errors.append(f"{name} not substituted in prompt")

        ledger.append(
            self.result(errors, details={"messageCount": len(messages or []), "messages": messages})
        )


class PromptsGetEmbeddedResourceProbe(ProbeDriver):
    name = "prompts-get-embedded-resource"
    description = "Test prompt with embedded resource content"
    check_id = "prompts-get-embedded-resource"
    check_name = "PromptsGetEmbeddedResource"
    check_description = "Get prompt with embedded resource"
    spec_references = (
        SpecReference(
            id="MCP-Prompts-Embedded-Resources",
            url=f"{SPEC_BASE_URL}/server/prompts#embedded-resources",
        ),
    )

    async def probe(self, client: McpClient, ledger: CheckLedger) -> None:
        result = await client.get_prompt(
            "test_prompt_with_embedded_resource", {"resourceUri": "test://example-resource"}
        )
        messages = _messages(result)

        errors: list[str] = []
        if messages is None:
            errors.append("Missing messages array")
        if not any(
            content.get("type") == "resource" or "resource" in content for content in _contents(messages)
        ):
            errors.append("No embedded resource found in prompt")

        ledger.append(
            self.result(errors, details={"messageCount": len(messages or []), "messages": messages})
        )


class PromptsGetWithImageProbe(ProbeDriver):
    name = "prompts-get-with-image"
    description = "Test prompt with image content"
    check_id = "prompts-get-with-image"
    check_name = "PromptsGetWithImage"
    check_description = "Get prompt with image content"
    spec_references = (
        SpecReference(id="MCP-Prompts-Image", url=f"{SPEC_BASE_URL}/server/prompts#image-content"),
    )

    async def probe(self, client: McpClient, ledger: CheckLedger) -> None:
        result = await client.get_prompt("test_prompt_with_image")
        messages = _messages(result)

        errors: list[str] = []
        if messages is None:
            errors.append("Missing messages array")
        if not any(
            content.get("type") == "image" and content.get("data") and content.get("mimeType")
            for content in _contents(messages)
        ):
            errors.append("No image content found in prompt")

        ledger.append(self.result(errors, details={"messageCount": len(messages or [])}))
