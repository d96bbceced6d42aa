"""Cooperative shutdown signal shared by all service tasks."""

from __future__ import annotations

import asyncio
import logging
import signal

logger = logging.getLogger(__name__)


class Shutdown:
    """One-shot shutdown flag tasks can poll or await."""

    def __init__(self) -> None:
        self._event = asyncio.Event()

    def trigger(self) -> None:
        if not self._event.is_set():
            logger.info("Shutting down")
        self._event.set()

    @property
    def triggered(self) -> bool:
        return self._event.is_set()

    async def signal(self) -> None:
        """Wait until shutdown is triggered."""
        await self._event.wait()

    async def wait(self, timeout: float) -> bool:
        """Wait at most *timeout* seconds.  Returns True if shutdown was triggered."""
        try:
            await asyncio.wait_for(self._event.wait(), timeout)
        except asyncio.TimeoutError:
            return False
        return True

    def install_signal_handlers(self) -> None:
        """Trigger on SIGINT/SIGTERM (where the platform supports it)."""
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, self.trigger)
            except NotImplementedError:
                logger.debug("Signal handlers not supported on this platform")
                return
