"""Scenario - base class for server-role scenarios that test an MCP client.

A scenario owns everything a single run needs: its listener, its session
registry and its check ledger. Nothing is shared between instances.
"""

import logging
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Mapping

from aiohttp import web

from ..checks.ledger import CheckLedger
from ..errors import TransportFault
from ..protocol.engine import ProtocolEngine
from ..transport.adapter import DEFAULT_PATH, build_app
from ..transport.lifecycle import DEFAULT_HOST, ServerLifecycle
from ..transport.session import SessionRegistry
from ..transport.stream import DEFAULT_KEEPALIVE_INTERVAL
from ..types import Check, ScenarioUrls

logger = logging.getLogger(__name__)


class RunState(Enum):
    NOT_STARTED = "not_started"
    RUNNING = "running"
    STOPPED = "stopped"


class Scenario(ABC):
    """Serves an MCP endpoint for a client under test and records checks."""

    name: str = ""
    description: str = ""
    # Ordered ids this scenario always reports, observed or not
    expected_check_ids: tuple[str, ...] = ()

    def __init__(
        self,
        host: str = DEFAULT_HOST,
        keepalive_interval: float = DEFAULT_KEEPALIVE_INTERVAL,
    ):
        self.checks = CheckLedger()
        self.registry = SessionRegistry(self.create_engine, keepalive_interval=keepalive_interval)
        self.state = RunState.NOT_STARTED
        self.urls: ScenarioUrls | None = None
        self._lifecycle = ServerLifecycle(host=host)

    @abstractmethod
    def create_engine(self) -> ProtocolEngine:
        """Create the protocol engine for one new session."""

    def observe_request(self, method: str, headers: Mapping[str, str], body: Any) -> None:
        logger.debug(f"[{self.name}] {method} {DEFAULT_PATH} body={body}")

    def build_app(self) -> web.Application:
        return build_app(self.registry, path=DEFAULT_PATH, on_request=self.observe_request)

    async def start(self) -> ScenarioUrls:
        """Bind an ephemeral port and return the endpoint URL.

        Raises:
            TransportFault: If the listener cannot be started; the scenario
                is stopped before the error propagates
        """
        if self.state is not RunState.NOT_STARTED:
            raise TransportFault(message=f"Scenario {self.name} cannot start from state {self.state.value}")

        try:
            base_url = await self._lifecycle.start(self.build_app())
        except Exception:
            await self.stop()
            raise

        self.state = RunState.RUNNING
        self.urls = ScenarioUrls(server_url=f"{base_url}{DEFAULT_PATH}")
        logger.info(f"Scenario {self.name} listening on {self.urls.server_url}")
        return self.urls

    async def stop(self) -> None:
        """Terminate every session and close the listener. Idempotent."""
        await self.registry.close()
        await self._lifecycle.stop()
        self.state = RunState.STOPPED

    def get_checks(self) -> list[Check]:
        """Return the finalized ledger, one check per expected id at least."""
        return self.checks.finalize(self.expected_check_ids)
