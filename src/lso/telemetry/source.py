"""Telemetry source interface and mission event types."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import AsyncIterator, Protocol, Union, runtime_checkable

from lso.core.types import Coalition, GroupCategory
from lso.tracking.transform import Transform

# Descriptor attribute marking carriers that can recover fixed wing aircraft.
CARRIER_ATTRIBUTE = "AircraftCarrier With Arresting Gear"


@dataclass(frozen=True)
class UnitInfo:
    name: str
    type: str
    group_name: str | None = None
    group_category: GroupCategory | None = None
    coalition: Coalition = Coalition.NEUTRAL
    player_name: str | None = None


@dataclass(frozen=True)
class UnitSnapshot:
    """A unit as reported with a mission event."""

    name: str
    transform: Transform = field(default_factory=Transform.empty)


@dataclass(frozen=True)
class BirthEvent:
    time: float
    unit: UnitInfo


@dataclass(frozen=True)
class LandEvent:
    time: float
    plane: UnitSnapshot
    carrier: UnitSnapshot


@dataclass(frozen=True)
class LandingQualityMarkEvent:
    """The built-in LSO's grade comment, e.g. ``LSO: GRADE:OK  : WIRE# 3``."""

    time: float
    plane: UnitSnapshot
    carrier: UnitSnapshot
    comment: str


MissionEvent = Union[BirthEvent, LandEvent, LandingQualityMarkEvent]


@runtime_checkable
class TelemetrySource(Protocol):
    """Access to the running mission.

    Lookups of units that do not exist raise
    :class:`~lso.core.errors.EntityNotFoundError`; everything else that goes
    wrong raises :class:`~lso.core.errors.TelemetryError` (or any other
    exception), which the service treats as transient.
    """

    async def get_transform(self, name: str) -> Transform:
        ...

    async def get_unit(self, name: str) -> UnitInfo:
        ...

    async def get_descriptor(self, name: str) -> list[str]:
        """DCS descriptor attributes of the unit's type."""
        ...

    async def get_scenario_start_time(self) -> str:
        """Scenario start as RFC 3339 timestamp."""
        ...

    async def get_mission_name(self) -> str:
        ...

    async def list_units(self) -> list[UnitInfo]:
        ...

    def stream_events(self) -> AsyncIterator[MissionEvent]:
        """Subscribe to mission events.  Every call returns a new stream."""
        ...
