"""Time sources for the recorder.

The recorder needs two readings: wall time for naming its files and a
monotonic reading for the landed grace period.  Tests swap in
:class:`SimClock` to move both by hand.
"""

from __future__ import annotations

import time
from typing import Protocol, runtime_checkable


@runtime_checkable
class Clock(Protocol):
    def now(self) -> float:
        """Wall time, epoch seconds."""
        ...

    def elapsed(self) -> float:
        """Monotonic seconds since the clock was created."""
        ...


class SystemClock:
    def __init__(self) -> None:
        self._created = time.monotonic()

    def now(self) -> float:
        return time.time()

    def elapsed(self) -> float:
        return time.monotonic() - self._created


class SimClock:
    """Clock that only moves on :meth:`advance`.

    *start_epoch* is the wall time at creation, 2021-11-11 14:37:27 UTC
    unless given.
    """

    def __init__(self, start_epoch: float = 1_636_641_447.0):
        self.start_epoch = start_epoch
        self._elapsed = 0.0

    def now(self) -> float:
        return self.start_epoch + self._elapsed

    def elapsed(self) -> float:
        return self._elapsed

    def advance(self, seconds: float) -> float:
        """Move forward by *seconds*; returns the new elapsed time."""
        if seconds < 0:
            raise ValueError(f"cannot move a clock backwards ({seconds} s)")
        self._elapsed += seconds
        return self._elapsed


class Deadline:
    """Fires once *duration* seconds of *clock* time have passed since :meth:`start`."""

    def __init__(self, clock: Clock, duration: float):
        self._clock = clock
        self._duration = duration
        self._started_at: float | None = None

    def start(self) -> None:
        """Arm the deadline.  Re-arming keeps the first start time."""
        if self._started_at is None:
            self._started_at = self._clock.elapsed()

    @property
    def armed(self) -> bool:
        return self._started_at is not None

    @property
    def expired(self) -> bool:
        if self._started_at is None:
            return False
        return self._clock.elapsed() - self._started_at > self._duration
