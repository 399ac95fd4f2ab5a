"""Checks module - check ledger and reusable protocol checks."""

from .client import client_initialization_check
from .ledger import MISSING_CHECK_DESCRIPTION, CheckLedger, missing_check
from .server import server_initialization_check

__all__ = [
    "CheckLedger",
    "MISSING_CHECK_DESCRIPTION",
    "missing_check",
    "client_initialization_check",
    "server_initialization_check",
]
