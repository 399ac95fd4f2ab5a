"""Client module - MCP client used to drive servers under test."""

from .notifications import (
    DEFAULT_QUIESCENCE_WINDOW,
    LOG_NOTIFICATION,
    PROGRESS_NOTIFICATION,
    NotificationCollector,
)
from .session import McpClient

__all__ = [
    "DEFAULT_QUIESCENCE_WINDOW",
    "LOG_NOTIFICATION",
    "McpClient",
    "NotificationCollector",
    "PROGRESS_NOTIFICATION",
]
