"""Integration tests running every probe against the reference server."""

import pytest

from mcp_conformance.config import HarnessConfig
from mcp_conformance.probe.driver import ORDERING_ERROR
from mcp_conformance.runner import run_batch
from mcp_conformance.scenarios.registry import default_registry
from mcp_conformance.scenarios.servers import (
    JsonSchema2020_12Probe,
    ToolsCallSamplingProbe,
    ToolsCallWithLoggingProbe,
    ToolsCallWithProgressProbe,
)
from mcp_conformance.types import CheckStatus

pytestmark = [pytest.mark.integration, pytest.mark.probe]

QUIESCENCE = 0.3


def make_probe(name: str):
    return default_registry().create_probe(name, quiescence_window=QUIESCENCE, timeout=10.0)


class TestProbesAgainstReferenceServer:
    @pytest.mark.parametrize("name", default_registry().list_probes())
    async def test_probe_passes(self, reference_url, name):
        checks = await make_probe(name).run(reference_url)

        failures = [(c.id, c.error_message) for c in checks if c.status is not CheckStatus.SUCCESS]
        assert failures == []

    async def test_sampling_reports_both_checks(self, reference_url):
        checks = await make_probe("tools-call-sampling").run(reference_url)

        assert [c.id for c in checks] == ["tools-call-sampling", "tools-call-sampling-request"]
        assert checks[1].details["request"]["maxTokens"] == 100

    async def test_run_batch_all_pass(self, reference_url, tmp_path):
        summary = await run_batch(
            reference_url,
            default_registry(),
            config=HarnessConfig(results_dir=str(tmp_path), quiescence_window=QUIESCENCE, timeout=10.0),
        )

        assert summary.success
        # tools-call-sampling adds one check, json-schema-2020-12 adds three
        assert summary.denominator == len(default_registry().list_probes()) + 4
        assert len(list(tmp_path.iterdir())) == len(summary.results)


class TestProgressOrdering:
    async def test_out_of_order(self, serve_reference):
        url = await serve_reference(progress_values=(50, 10, 100))

        checks = await ToolsCallWithProgressProbe(quiescence_window=QUIESCENCE).run(url)

        assert checks[0].status is CheckStatus.FAILURE
        assert checks[0].error_message == ORDERING_ERROR

    async def test_too_few_is_a_count_error(self, serve_reference):
        url = await serve_reference(progress_values=(50, 10))

        checks = await ToolsCallWithProgressProbe(quiescence_window=QUIESCENCE).run(url)

        assert checks[0].error_message == "Expected at least 3 progress notifications, got 2"

    async def test_no_progress(self, serve_reference):
        url = await serve_reference(progress_values=())

        checks = await ToolsCallWithProgressProbe(quiescence_window=QUIESCENCE).run(url)

        assert checks[0].error_message == "No progress notifications received"


class TestLogging:
    async def test_too_few_logs(self, serve_reference):
        url = await serve_reference(log_count=1)

        checks = await ToolsCallWithLoggingProbe(quiescence_window=QUIESCENCE).run(url)

        assert checks[0].status is CheckStatus.FAILURE
        assert checks[0].error_message == "Expected at least 3 log messages, got 1"
        assert checks[0].details["logCount"] == 1


class TestSamplingNotRequested:
    async def test_sub_check_skipped(self, serve_reference):
        url = await serve_reference(request_sampling=False)

        checks = await ToolsCallSamplingProbe(quiescence_window=QUIESCENCE).run(url)

        assert [(c.id, c.status) for c in checks] == [
            ("tools-call-sampling", CheckStatus.FAILURE),
            ("tools-call-sampling-request", CheckStatus.SKIPPED),
        ]
        assert checks[0].error_message == "Server did not request sampling from client"


class TestJsonSchemaKeywords:
    async def test_reports_each_keyword(self, reference_url):
        checks = await JsonSchema2020_12Probe().run(reference_url)

        assert [c.id for c in checks] == [
            "json-schema-2020-12-tool-found",
            "json-schema-2020-12-$schema",
            "json-schema-2020-12-$defs",
            "json-schema-2020-12-additionalProperties",
        ]
        assert checks[2].details["defsKeys"] == ["address"]

    async def test_missing_tool_skips_keyword_checks(self, serve_reference):
        url = await serve_reference(json_schema_tool=False)

        checks = await JsonSchema2020_12Probe().run(url)

        assert checks[0].status is CheckStatus.FAILURE
        assert checks[0].error_message.startswith("Tool 'json_schema_2020_12_tool' not found. Available tools: ")
        assert [c.status for c in checks[1:]] == [CheckStatus.SKIPPED] * 3
