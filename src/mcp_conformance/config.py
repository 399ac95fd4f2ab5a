"""Harness configuration management.

Handles persistent configuration stored in ~/.mcp-conformance/config.yaml.
Supports environment variable overrides and CLI flag precedence.
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable

import yaml

logger = logging.getLogger(__name__)

# Default values
DEFAULT_RESULTS_DIR = "results"
DEFAULT_TIMEOUT = 30.0
DEFAULT_QUIESCENCE_WINDOW = 0.5
DEFAULT_LOG_LEVEL = "warning"

# Environment variable mappings
ENV_VARS = {
    "results_dir": "MCP_CONFORMANCE_RESULTS_DIR",
    "timeout": "MCP_CONFORMANCE_TIMEOUT",
    "quiescence_window": "MCP_CONFORMANCE_QUIESCENCE_WINDOW",
    "log_level": "MCP_CONFORMANCE_LOG_LEVEL",
}

_CONVERTERS: dict[str, Callable[[Any], Any]] = {
    "results_dir": str,
    "timeout": float,
    "quiescence_window": float,
    "log_level": lambda value: str(value).lower(),
}


@dataclass
class HarnessConfig:
    """Harness configuration."""

    results_dir: str = DEFAULT_RESULTS_DIR
    timeout: float = DEFAULT_TIMEOUT
    quiescence_window: float = DEFAULT_QUIESCENCE_WINDOW
    log_level: str = DEFAULT_LOG_LEVEL

    # Track where each value came from
    _sources: dict[str, str] = field(default_factory=dict)

    def get_source(self, key: str) -> str:
        """Get the source of a config value."""
        return self._sources.get(key, "default")

    def to_dict(self) -> dict[str, Any]:
        return {key: getattr(self, key) for key in ENV_VARS}


def get_config_path() -> Path:
    """Get the config file path.

    Returns:
        Path to ~/.mcp-conformance/config.yaml
    """
    return Path.home() / ".mcp-conformance" / "config.yaml"


def _read_config_file(path: Path) -> dict[str, Any]:
    try:
        with open(path) as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        logger.warning(f"Ignoring unreadable config file {path}: {e}")
        return {}
    if not isinstance(data, dict):
        logger.warning(f"Ignoring config file {path}: expected a mapping")
        return {}
    return data


def load_config(path: str | Path | None = None) -> HarnessConfig:
    """Load harness configuration.

    Precedence (highest to lowest):
    1. Environment variables
    2. Config file (``path`` or ~/.mcp-conformance/config.yaml)
    3. Defaults

    Args:
        path: Optional config file overriding the default location

    Returns:
        HarnessConfig with values and sources
    """
    config = HarnessConfig()
    sources = {key: "default" for key in ENV_VARS}

    config_path = Path(path).expanduser() if path else get_config_path()
    if config_path.exists():
        file_config = _read_config_file(config_path)
        for key, convert in _CONVERTERS.items():
            if key not in file_config:
                continue
            try:
                setattr(config, key, convert(file_config[key]))
                sources[key] = "config file"
            except (TypeError, ValueError):
                logger.warning(f"Invalid value for {key} in {config_path}: {file_config[key]!r}")

    for key, env_var in ENV_VARS.items():
        value = os.environ.get(env_var)
        if not value:
            continue
        try:
            setattr(config, key, _CONVERTERS[key](value))
            sources[key] = "environment"
        except ValueError:
            logger.warning(f"Invalid value for {env_var}: {value!r}")

    config._sources = sources
    return config
