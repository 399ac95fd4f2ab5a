"""Unit tests for harness configuration loading."""

import pytest
import yaml

from mcp_conformance.config import HarnessConfig, load_config

pytestmark = [pytest.mark.unit]


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    """Point HOME at an empty directory and clear harness env vars."""
    monkeypatch.setenv("HOME", str(tmp_path))
    for var in (
        "MCP_CONFORMANCE_RESULTS_DIR",
        "MCP_CONFORMANCE_TIMEOUT",
        "MCP_CONFORMANCE_QUIESCENCE_WINDOW",
        "MCP_CONFORMANCE_LOG_LEVEL",
    ):
        monkeypatch.delenv(var, raising=False)


def write_config(path, data):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(yaml.dump(data))
    return path


class TestLoadConfig:
    def test_defaults(self):
        config = load_config()

        assert config == HarnessConfig(_sources=config._sources)
        assert config.quiescence_window == 0.5
        assert config.get_source("timeout") == "default"

    def test_default_config_file(self, tmp_path):
        write_config(tmp_path / ".mcp-conformance" / "config.yaml", {"timeout": 12, "log_level": "DEBUG"})

        config = load_config()

        assert config.timeout == 12.0
        assert config.log_level == "debug"
        assert config.get_source("timeout") == "config file"

    def test_explicit_path(self, tmp_path):
        path = write_config(tmp_path / "custom.yaml", {"results_dir": "out"})

        config = load_config(path)

        assert config.results_dir == "out"

    def test_env_overrides_file(self, tmp_path, monkeypatch):
        path = write_config(tmp_path / "custom.yaml", {"quiescence_window": 1.0})
        monkeypatch.setenv("MCP_CONFORMANCE_QUIESCENCE_WINDOW", "0.25")

        config = load_config(path)

        assert config.quiescence_window == 0.25
        assert config.get_source("quiescence_window") == "environment"

    def test_invalid_values_ignored(self, tmp_path, monkeypatch):
        path = write_config(tmp_path / "custom.yaml", {"timeout": "soon"})
        monkeypatch.setenv("MCP_CONFORMANCE_QUIESCENCE_WINDOW", "never")

        config = load_config(path)

        assert config.timeout == 30.0
        assert config.quiescence_window == 0.5

    def test_malformed_file_ignored(self, tmp_path):
        path = tmp_path / "broken.yaml"
        path.write_text("timeout: [unclosed")

        assert load_config(path).timeout == 30.0

    def test_to_dict(self):
        assert load_config().to_dict() == {
            "results_dir": "results",
            "timeout": 30.0,
            "quiescence_window": 0.5,
            "log_level": "warning",
        }
