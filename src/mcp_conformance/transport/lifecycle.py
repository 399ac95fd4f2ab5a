"""ServerLifecycle - binds an aiohttp app to an ephemeral local port.

Used by scenarios to allocate their listeners. stop() is safe to call any
number of times, including after a failed start().
"""

from typing import Optional

import structlog
from aiohttp import web

from ..errors import TransportFault

logger = structlog.get_logger(__name__)

DEFAULT_HOST = "127.0.0.1"


class ServerLifecycle:
    """Start/stop wrapper around one aiohttp AppRunner."""

    def __init__(self, host: str = DEFAULT_HOST, port: int = 0):
        """Initialize ServerLifecycle.

        Args:
            host: Interface to bind
            port: Port to bind; 0 lets the OS choose
        """
        self.host = host
        self.port = port
        self._runner: Optional[web.AppRunner] = None
        self._base_url: Optional[str] = None

    @property
    def base_url(self) -> Optional[str]:
        return self._base_url

    @property
    def running(self) -> bool:
        return self._runner is not None

    async def start(self, app: web.Application) -> str:
        """Serve ``app`` and return its base URL.

        Raises:
            TransportFault: If the listener cannot be set up; anything already
                allocated is released first
        """
        if self._runner is not None:
            raise TransportFault(message="Server already started")

        runner = web.AppRunner(app, access_log=None)
        try:
            await runner.setup()
            site = web.TCPSite(runner, self.host, self.port)
            await site.start()
            port = runner.addresses[0][1]
        except Exception as e:
            await runner.cleanup()
            raise TransportFault(
                message=f"Failed to bind {self.host}:{self.port}: {e}",
                data={"host": self.host, "port": self.port},
            ) from e

        self._runner = runner
        self._base_url = f"http://{self.host}:{port}"
        logger.info("Server started", url=self._base_url)
        return self._base_url

    async def stop(self) -> None:
        """Close the listener if it is running."""
        runner, self._runner = self._runner, None
        if runner is None:
            return
        await runner.cleanup()
        logger.info("Server stopped", url=self._base_url)
        self._base_url = None
