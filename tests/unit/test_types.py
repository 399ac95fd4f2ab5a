"""Unit tests for core types and error mapping."""

from dataclasses import FrozenInstanceError
from datetime import datetime, timezone

import pytest

from mcp_conformance.errors import (
    JSONRPC_INTERNAL_ERROR,
    JSONRPC_METHOD_NOT_FOUND,
    InvalidSessionError,
    McpClientError,
    map_connection_error,
    map_http_error,
)
from mcp_conformance.types import Check, CheckStatus, SpecReference, format_timestamp

pytestmark = [pytest.mark.unit]


class TestCheck:
    """Tests for Check construction and serialization."""

    def test_from_errors_success(self):
        check = Check.from_errors(id="a", name="A", description="desc", errors=[])

        assert check.status is CheckStatus.SUCCESS
        assert check.error_message is None
        assert check.passed

    def test_from_errors_failure_joins_errors(self):
        check = Check.from_errors(
            id="a", name="A", description="desc", errors=["one", "two"], include_logs=True
        )

        assert check.failed
        assert check.error_message == "one; two"
        assert check.logs == ("one", "two")

    def test_check_is_immutable(self):
        check = Check(id="a", name="A", description="desc", status=CheckStatus.INFO)

        with pytest.raises(FrozenInstanceError):
            check.status = CheckStatus.FAILURE

    def test_to_dict_uses_report_keys(self):
        check = Check(
            id="a",
            name="A",
            description="desc",
            status=CheckStatus.FAILURE,
            timestamp=datetime(2025, 1, 2, 3, 4, 5, 678000, tzinfo=timezone.utc),
            spec_references=(SpecReference(id="MCP-Tools", url="https://example.com/tools"),),
            details={"k": 1},
            error_message="boom",
        )

        assert check.to_dict() == {
            "id": "a",
            "name": "A",
            "description": "desc",
            "status": "FAILURE",
            "timestamp": "2025-01-02T03:04:05.678Z",
            "specReferences": [{"id": "MCP-Tools", "url": "https://example.com/tools"}],
            "details": {"k": 1},
            "errorMessage": "boom",
        }

    def test_to_dict_omits_empty_fields(self):
        data = Check(id="a", name="A", description="desc", status=CheckStatus.SUCCESS).to_dict()

        assert set(data) == {"id", "name", "description", "status", "timestamp"}

    def test_format_timestamp_milliseconds(self):
        value = datetime(2025, 6, 18, 12, 0, 0, 1500, tzinfo=timezone.utc)
        assert format_timestamp(value) == "2025-06-18T12:00:00.001Z"


class TestErrors:
    """Tests for error types and HTTP error mapping."""

    def test_invalid_session_jsonrpc(self):
        assert InvalidSessionError().to_jsonrpc() == {
            "code": -32000,
            "message": "Invalid or missing session ID",
        }

    def test_map_400(self):
        error = map_http_error(400, "Invalid or missing session ID")
        assert isinstance(error, McpClientError)
        assert error.data["http_status"] == 400
        assert "Bad request" in error.message

    def test_map_404(self):
        assert map_http_error(404, "").code == JSONRPC_METHOD_NOT_FOUND

    def test_map_500(self):
        error = map_http_error(503, "down")
        assert error.code == JSONRPC_INTERNAL_ERROR
        assert error.message == "Server error: down"

    def test_map_connection_error(self):
        error = map_connection_error("refused", "http://127.0.0.1:9/mcp")
        assert error.message == "Cannot reach server at 127.0.0.1:9"

    def test_map_timeout(self):
        error = map_connection_error("slow", "http://127.0.0.1:9/mcp", is_timeout=True)
        assert "timeout" in error.message.lower()

    def test_str_is_message(self):
        assert str(McpClientError(message="nope")) == "nope"
