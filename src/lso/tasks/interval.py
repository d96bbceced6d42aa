"""Periodic ticks that end on shutdown."""

from __future__ import annotations

import asyncio
from typing import AsyncIterator

from lso.tasks.shutdown import Shutdown


async def interval(period: float, shutdown: Shutdown) -> AsyncIterator[int]:
    """Yield the tick number every *period* seconds until *shutdown* fires.

    The first tick is immediate.  When the consumer falls behind, missed ticks
    are not made up for; the next one comes a full period later.
    """
    loop = asyncio.get_running_loop()
    tick = 0
    next_at = loop.time()
    while not shutdown.triggered:
        delay = next_at - loop.time()
        if delay > 0 and await shutdown.wait(delay):
            return
        yield tick
        tick += 1
        next_at += period
        now = loop.time()
        if next_at < now:
            next_at = now + period
