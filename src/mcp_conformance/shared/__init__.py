"""Shared utilities for mcp-conformance."""

from .logging import LOG_LEVELS, configure_logging, run_context

__all__ = ["LOG_LEVELS", "configure_logging", "run_context"]
