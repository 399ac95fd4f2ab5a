"""Probe module - client-role scenario driver."""

from .driver import ORDERING_ERROR, ProbeDriver, evaluate_ordered

__all__ = ["ORDERING_ERROR", "ProbeDriver", "evaluate_ordered"]
