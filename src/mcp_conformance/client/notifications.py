"""Notification collection with a bounded quiescence wait."""

import asyncio
import logging
from functools import partial
from typing import Any, Optional

logger = logging.getLogger(__name__)

LOG_NOTIFICATION = "notifications/message"
PROGRESS_NOTIFICATION = "notifications/progress"
DEFAULT_QUIESCENCE_WINDOW = 0.5

NOTIFICATION_KINDS = {
    "log": LOG_NOTIFICATION,
    "progress": PROGRESS_NOTIFICATION,
}


class NotificationCollector:
    """Records server notifications by kind and lets probes wait for them.

    ``wait_for`` returns as soon as the minimum count is reached, otherwise
    after the quiescence window elapses. It never polls.
    """

    def __init__(self, client: Any = None, kinds: Optional[dict[str, str]] = None):
        self.kinds = dict(kinds or NOTIFICATION_KINDS)
        self._collected: dict[str, list[dict[str, Any]]] = {kind: [] for kind in self.kinds}
        self._waiters: dict[str, list[tuple[int, asyncio.Event]]] = {kind: [] for kind in self.kinds}
        if client is not None:
            self.attach(client)

    def attach(self, client: Any) -> None:
        """Subscribe to every tracked notification method on ``client``."""
        for kind, method in self.kinds.items():
            client.on_notification(method, partial(self.record, kind))

    def record(self, kind: str, notification: dict[str, Any]) -> None:
        collected = self._collected[kind]
        collected.append(notification)
        for minimum, event in self._waiters[kind]:
            if len(collected) >= minimum:
                event.set()

    def get(self, kind: str) -> list[dict[str, Any]]:
        return list(self._collected[kind])

    def params(self, kind: str) -> list[dict[str, Any]]:
        return [n.get("params") or {} for n in self._collected[kind]]

    def count(self, kind: str) -> int:
        return len(self._collected[kind])

    async def wait_for(
        self,
        kind: str,
        minimum: int = 1,
        window: float = DEFAULT_QUIESCENCE_WINDOW,
    ) -> list[dict[str, Any]]:
        """Wait until ``minimum`` notifications of ``kind`` arrived or ``window`` elapsed.

        Returns:
            Everything collected for ``kind`` so far
        """
        if self.count(kind) >= minimum:
            return self.get(kind)

        event = asyncio.Event()
        waiter = (minimum, event)
        self._waiters[kind].append(waiter)
        try:
            await asyncio.wait_for(event.wait(), timeout=window)
        except asyncio.TimeoutError:
            logger.debug(f"Quiescence window elapsed with {self.count(kind)}/{minimum} {kind} notifications")
        finally:
            self._waiters[kind].remove(waiter)
        return self.get(kind)

    def clear(self) -> None:
        for collected in self._collected.values():
            collected.clear()
