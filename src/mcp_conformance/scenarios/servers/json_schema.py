"""JSON Schema 2020-12 keyword preservation probe (SEP-1613).

The server must expose ``json_schema_2020_12_tool`` whose inputSchema uses
2020-12 features::

    {
      "$schema": "https://json-schema.org/draft/2020-12/schema",
      "type": "object",
      "$defs": {"address": {"type": "object", "properties": {...}}},
      "properties": {"name": {...}, "address": {"$ref": "#/$defs/address"}},
      "additionalProperties": false
    }

and must not strip ``$schema``, ``$defs`` or ``additionalProperties`` when
listing it.
"""

from typing import Any

from ...checks.ledger import CheckLedger
from ...client.session import McpClient
from ...probe.driver import ProbeDriver
from ...types import SpecReference

EXPECTED_TOOL_NAME = "json_schema_2020_12_tool"
EXPECTED_SCHEMA_DIALECT = "https://json-schema.org/draft/2020-12/schema"

SCHEMA_CHECK_ID = "json-schema-2020-12-$schema"
DEFS_CHECK_ID = "json-schema-2020-12-$defs"
ADDITIONAL_PROPERTIES_CHECK_ID = "json-schema-2020-12-additionalProperties"


class JsonSchema2020_12Probe(ProbeDriver):
    name = "json-schema-2020-12"
    description = "Validates JSON Schema 2020-12 keyword preservation (SEP-1613)"
    check_id = "json-schema-2020-12-tool-found"
    check_name = "JsonSchema2020_12ToolFound"
    check_description = f"Server advertises tool '{EXPECTED_TOOL_NAME}'"
    spec_references = (
        SpecReference(id="SEP-1613", url="https://github.com/modelcontextprotocol/specification/pull/655"),
    )

    keyword_checks = (
        (
            SCHEMA_CHECK_ID,
            "JsonSchema2020_12$Schema",
            f"inputSchema.$schema field preserved with value '{EXPECTED_SCHEMA_DIALECT}'",
        ),
        (
            DEFS_CHECK_ID,
            "JsonSchema2020_12$Defs",
            "inputSchema.$defs field preserved with expected structure",
        ),
        (
            ADDITIONAL_PROPERTIES_CHECK_ID,
            "JsonSchema2020_12AdditionalProperties",
            "inputSchema.additionalProperties field preserved",
        ),
    )

    @property
    def expected_check_ids(self) -> tuple[str, ...]:
        return (self.check_id, *(check_id for check_id, _, _ in self.keyword_checks))

    async def probe(self, client: McpClient, ledger: CheckLedger) -> None:
        result = await client.list_tools()
        tools = result.get("tools") if isinstance(result.get("tools"), list) else []
        names = [t.get("name") for t in tools]
        tool = next((t for t in tools if t.get("name") == EXPECTED_TOOL_NAME), None)

        errors: list[str] = []
        if tool is None:
            errors.append(
                f"Tool '{EXPECTED_TOOL_NAME}' not found. Available tools: {', '.join(map(str, names)) or 'none'}"
            )
        ledger.append(self.result(errors, details={"toolFound": tool is not None, "availableTools": names}))

        if tool is None:
            for check_id, name, description in self.keyword_checks:
                ledger.append(self.skipped(check_id, name, description, reason="Tool not found"))
            return

        schema = tool.get("inputSchema") or {}
        outcomes = {
            SCHEMA_CHECK_ID: self._check_schema(schema),
            DEFS_CHECK_ID: self._check_defs(schema),
            ADDITIONAL_PROPERTIES_CHECK_ID: self._check_additional_properties(schema),
        }
        for check_id, name, description in self.keyword_checks:
            keyword_errors, details = outcomes[check_id]
            ledger.append(
                self.result(keyword_errors, details=details, check_id=check_id, name=name, description=description)
            )

    @staticmethod
    def _check_schema(schema: dict[str, Any]) -> tuple[list[str], dict[str, Any]]:
        value = schema.get("$schema")
        errors: list[str] = []
        if "$schema" not in schema:
            errors.append("$schema field missing from inputSchema - field was likely stripped")
        elif value != EXPECTED_SCHEMA_DIALECT:
            errors.append(f"$schema has unexpected value: {value!r}")
        return errors, {"hasSchema": "$schema" in schema, "schemaValue": value, "expected": EXPECTED_SCHEMA_DIALECT}

    @staticmethod
    def _check_defs(schema: dict[str, Any]) -> tuple[list[str], dict[str, Any]]:
        defs = schema.get("$defs")
        keys = list(defs) if isinstance(defs, dict) else []
        errors: list[str] = []
        if "$defs" not in schema:
            errors.append("$defs field missing from inputSchema - field was likely stripped")
        elif "address" not in keys:
            errors.append('$defs exists but missing expected "address" definition')
        return errors, {"hasDefs": "$defs" in schema, "defsKeys": keys, "defsValue": defs}

    @staticmethod
    def _check_additional_properties(schema: dict[str, Any]) -> tuple[list[str], dict[str, Any]]:
        value = schema.get("additionalProperties")
        errors: list[str] = []
        if "additionalProperties" not in schema:
            errors.append("additionalProperties field missing from inputSchema - field was likely stripped")
        elif value is not False:
            errors.append(f"additionalProperties has unexpected value: {value!r}, expected: false")
        return errors, {
            "hasAdditionalProps": "additionalProperties" in schema,
            "additionalPropsValue": value,
            "expected": False,
        }
