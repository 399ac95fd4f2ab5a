"""Registry of scenario factories.

Factories, not instances, are registered: every run gets a fresh scenario
so concurrent runs never share a ledger, registry or listener.
"""

from typing import Any, Callable

from ..probe.driver import ProbeDriver
from .base import Scenario

ScenarioFactory = Callable[..., Scenario]
ProbeFactory = Callable[..., ProbeDriver]


class ScenarioRegistry:
    """Named scenario (server role) and probe (client role) factories."""

    def __init__(self) -> None:
        self._scenarios: dict[str, ScenarioFactory] = {}
        self._probes: dict[str, ProbeFactory] = {}

    def register_scenario(self, name: str, factory: ScenarioFactory) -> None:
        self._scenarios[name] = factory

    def register_probe(self, name: str, factory: ProbeFactory) -> None:
        self._probes[name] = factory

    def create_scenario(self, name: str, **kwargs: Any) -> Scenario:
        """Instantiate the scenario registered as ``name``.

        Raises:
            KeyError: If no scenario has that name
        """
        factory = self._scenarios.get(name)
        if factory is None:
            raise KeyError(f"Unknown scenario: {name}")
        return factory(**kwargs)

    def create_probe(self, name: str, **kwargs: Any) -> ProbeDriver:
        """Instantiate the probe registered as ``name``.

        Raises:
            KeyError: If no probe has that name
        """
        factory = self._probes.get(name)
        if factory is None:
            raise KeyError(f"Unknown client scenario: {name}")
        return factory(**kwargs)

    def list_scenarios(self) -> list[str]:
        return list(self._scenarios)

    def list_probes(self) -> list[str]:
        return list(self._probes)

    def has_scenario(self, name: str) -> bool:
        return name in self._scenarios

    def has_probe(self, name: str) -> bool:
        return name in self._probes


def default_registry() -> ScenarioRegistry:
    """Build a new registry holding the built-in scenarios and probes.

    Each call returns an independent registry; the CLI builds one at startup
    and passes it to the runner.
    """
    from .clients import ALL_SCENARIOS
    from .servers import ALL_PROBES

    registry = ScenarioRegistry()
    for scenario_cls in ALL_SCENARIOS:
        registry.register_scenario(scenario_cls.name, scenario_cls)
    for probe_cls in ALL_PROBES:
        registry.register_probe(probe_cls.name, probe_cls)
    return registry
