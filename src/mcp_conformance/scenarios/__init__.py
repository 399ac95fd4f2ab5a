"""Scenarios module - server-role scenarios, client-role probes and their registry."""

from .base import RunState, Scenario
from .registry import ScenarioRegistry, default_registry

__all__ = ["RunState", "Scenario", "ScenarioRegistry", "default_registry"]
