"""In-process telemetry source driven by scripted unit trajectories.

Used by the tests and the demo script in place of a live DCS connection.
Units hold either a fixed Transform or a script of Transforms that is
consumed one sample per :meth:`SimulatedTelemetrySource.get_transform` call
(the last sample repeats once the script is exhausted).
"""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from dataclasses import dataclass, field
from typing import AsyncIterator, Iterable

from lso.core.errors import EntityNotFoundError, TelemetryError
from lso.telemetry.source import BirthEvent, MissionEvent, UnitInfo
from lso.tracking.transform import Transform

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Simulated unit
# ---------------------------------------------------------------------------


@dataclass
class SimulatedUnit:
    info: UnitInfo
    descriptor: list[str] = field(default_factory=list)
    script: deque[Transform] = field(default_factory=deque)
    current: Transform = field(default_factory=Transform.empty)
    polls: int = 0

    def next_transform(self) -> Transform:
        if self.script:
            self.current = self.script.popleft()
        self.polls += 1
        return self.current


# ---------------------------------------------------------------------------
# SimulatedTelemetrySource
# ---------------------------------------------------------------------------


class SimulatedTelemetrySource:
    """Scripted implementation of the TelemetrySource protocol."""

    def __init__(
        self,
        scenario_start_time: str = "2021-11-11T14:00:00Z",
        mission_name: str = "Simulated Carrier Qualification",
    ):
        self._scenario_start_time = scenario_start_time
        self._mission_name = mission_name
        self._units: dict[str, SimulatedUnit] = {}
        self._subscribers: list[asyncio.Queue[MissionEvent | None]] = []
        # unit name -> [(poll count, event)], fired once the unit was polled that often
        self._pending: dict[str, list[tuple[int, MissionEvent]]] = {}
        self._failures: deque[BaseException] = deque()

    # --- scripting ---

    def add_unit(
        self,
        info: UnitInfo,
        descriptor: Iterable[str] = (),
        transforms: Iterable[Transform] = (),
        announce: bool = False,
    ) -> SimulatedUnit:
        """Add a unit.  With *announce* a BirthEvent is emitted for it."""
        unit = SimulatedUnit(info=info, descriptor=list(descriptor), script=deque(transforms))
        if unit.script:
            unit.current = unit.script[0]
        self._units[info.name] = unit
        if announce:
            self.emit(BirthEvent(time=unit.current.time, unit=info))
        return unit

    def remove_unit(self, name: str) -> None:
        if self._units.pop(name, None) is not None:
            logger.debug("removed simulated unit %s", name)

    def set_transform(self, name: str, transform: Transform) -> None:
        unit = self._unit(name)
        unit.script.clear()
        unit.current = transform

    def extend_script(self, name: str, transforms: Iterable[Transform]) -> None:
        self._unit(name).script.extend(transforms)

    def emit(self, event: MissionEvent) -> None:
        for queue in self._subscribers:
            queue.put_nowait(event)

    def emit_after(self, name: str, polls: int, event: MissionEvent) -> None:
        """Emit *event* once unit *name* has been polled *polls* times."""
        self._pending.setdefault(name, []).append((polls, event))

    def fail_next(self, exc: BaseException | None = None) -> None:
        """Make the next request raise *exc* (a TelemetryError by default)."""
        self._failures.append(exc or TelemetryError("simulated connection failure"))

    def close(self) -> None:
        """End all event streams."""
        for queue in self._subscribers:
            queue.put_nowait(None)

    def polls(self, name: str) -> int:
        return self._unit(name).polls

    # --- TelemetrySource ---

    def _check_failure(self) -> None:
        if self._failures:
            raise self._failures.popleft()

    def _unit(self, name: str) -> SimulatedUnit:
        unit = self._units.get(name)
        if unit is None:
            raise EntityNotFoundError(name)
        return unit

    async def get_transform(self, name: str) -> Transform:
        self._check_failure()
        unit = self._unit(name)
        transform = unit.next_transform()

        pending = self._pending.get(name)
        if pending:
            due = [event for polls, event in pending if polls <= unit.polls]
            self._pending[name] = [(p, e) for p, e in pending if p > unit.polls]
            for event in due:
                self.emit(event)

        return transform

    async def get_unit(self, name: str) -> UnitInfo:
        self._check_failure()
        return self._unit(name).info

    async def get_descriptor(self, name: str) -> list[str]:
        self._check_failure()
        return list(self._unit(name).descriptor)

    async def get_scenario_start_time(self) -> str:
        self._check_failure()
        return self._scenario_start_time

    async def get_mission_name(self) -> str:
        self._check_failure()
        return self._mission_name

    async def list_units(self) -> list[UnitInfo]:
        self._check_failure()
        return [unit.info for unit in self._units.values()]

    def stream_events(self) -> AsyncIterator[MissionEvent]:
        # Subscribe right away so events emitted before the first iteration
        # are not lost.
        queue: asyncio.Queue[MissionEvent | None] = asyncio.Queue()
        self._subscribers.append(queue)
        return self._drain(queue)

    async def _drain(self, queue: asyncio.Queue[MissionEvent | None]) -> AsyncIterator[MissionEvent]:
        try:
            while True:
                event = await queue.get()
                if event is None:
                    return
                yield event
        finally:
            self._subscribers.remove(queue)
