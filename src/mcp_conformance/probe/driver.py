"""ProbeDriver - base class for client-role scenarios that probe a server.

A probe connects, performs the handshake, issues its operations and records
checks. Whatever goes wrong, run() returns a list of checks and never raises.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Optional, Sequence

from ..checks.ledger import CheckLedger
from ..client.notifications import DEFAULT_QUIESCENCE_WINDOW, NotificationCollector
from ..client.session import DEFAULT_TIMEOUT, McpClient
from ..errors import McpClientError
from ..types import Check, CheckStatus, SpecReference

logger = logging.getLogger(__name__)

ORDERING_ERROR = "Progress values should be increasing"


def evaluate_ordered(
    values: Sequence[float],
    minimum: int,
    label: str = "progress notifications",
) -> list[str]:
    """Validate that at least ``minimum`` values arrived in non-decreasing order.

    A count deficiency is reported on its own; ordering is only evaluated
    once enough values were observed.

    Returns:
        Validation errors (empty when the values pass)
    """
    if not values:
        return [f"No {label} received"]
    if len(values) < minimum:
        return [f"Expected at least {minimum} {label}, got {len(values)}"]
    if any(later < earlier for earlier, later in zip(values, values[1:])):
        return [ORDERING_ERROR]
    return []


class ProbeDriver(ABC):
    """Runs one client-role scenario against a server endpoint."""

    name: str = ""
    description: str = ""
    check_id: str = ""
    check_name: str = ""
    check_description: str = ""
    spec_references: tuple[SpecReference, ...] = ()
    # Wait for push notifications after the operations
    expects_notifications: bool = False
    # Open the push stream even without expecting notifications (server requests)
    requires_stream: bool = False
    performs_handshake: bool = True

    def __init__(
        self,
        quiescence_window: float = DEFAULT_QUIESCENCE_WINDOW,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        self.quiescence_window = quiescence_window
        self.timeout = timeout
        self.notifications: Optional[NotificationCollector] = None
        self.server_url: Optional[str] = None

    @property
    def expected_check_ids(self) -> tuple[str, ...]:
        return (self.check_id,)

    def create_client(self, server_url: str) -> McpClient:
        return McpClient(server_url, timeout=self.timeout)

    async def run(self, server_url: str) -> list[Check]:
        """Probe ``server_url`` and return the recorded checks.

        Any failure becomes exactly one FAILURE check under ``check_id``.
        """
        self.server_url = server_url
        ledger = CheckLedger()
        client: Optional[McpClient] = None
        try:
            client = self.create_client(server_url)
            if self.expects_notifications:
                self.notifications = NotificationCollector(client)
            if self.performs_handshake:
                await client.initialize()
                if self.expects_notifications or self.requires_stream:
                    await client.open_stream()
            await self.probe(client, ledger)
        except Exception as e:
            logger.info(f"Probe {self.name} failed: {e}")
            return [self.failure(e)]
        finally:
            if client is not None:
                await self._shutdown(client)
        return ledger.finalize(self.expected_check_ids)

    @abstractmethod
    async def probe(self, client: McpClient, ledger: CheckLedger) -> None:
        """Issue the probe's operations and append checks to ``ledger``."""

    async def _shutdown(self, client: McpClient) -> None:
        """Terminate the session and release the client; never raises."""
        try:
            await client.terminate()
        except McpClientError as e:
            logger.debug(f"Session termination failed: {e.message}")
        except Exception as e:
            logger.warning(f"Unexpected error terminating session: {e}")
        finally:
            await client.close()

    async def collect(self, kind: str, minimum: int) -> list[dict[str, Any]]:
        """Wait out the quiescence window for ``kind`` notifications."""
        if self.notifications is None:
            return []
        await self.notifications.wait_for(kind, minimum, self.quiescence_window)
        return self.notifications.params(kind)

    def failure(self, error: BaseException) -> Check:
        return Check(
            id=self.check_id,
            name=self.check_name,
            description=self.check_description,
            status=CheckStatus.FAILURE,
            spec_references=self.spec_references,
            error_message=f"Failed: {error}",
        )

    def result(
        self,
        errors: list[str],
        details: Optional[dict[str, Any]] = None,
        check_id: Optional[str] = None,
        name: Optional[str] = None,
        description: Optional[str] = None,
    ) -> Check:
        """Build a SUCCESS/FAILURE check, defaulting to the probe's own id."""
        return Check.from_errors(
            id=check_id or self.check_id,
            name=name or self.check_name,
            description=description or self.check_description,
            errors=errors,
            spec_references=self.spec_references,
            details=details,
        )

    def skipped(self, check_id: str, name: str, description: str, reason: str) -> Check:
        """Build a SKIPPED check for a sub-check whose prerequisite did not happen."""
        return Check(
            id=check_id,
            name=name,
            description=description,
            status=CheckStatus.SKIPPED,
            spec_references=self.spec_references,
            details={"reason": reason},
        )
