"""Merge carrier and plane samples plus mission events into ACMI records.

Both entities are polled independently, so their samples carry slightly
different timestamps; mission events arrive out of band with their own time.
:class:`RecordingMerger` turns all of that into one time-ordered record
sequence, eliding coordinates that did not change.
"""

from __future__ import annotations

import math
from typing import Iterable

from lso.core.types import Coalition, Color, Tag
from lso.recording.acmi import (
    Coords,
    Event,
    Frame,
    GlobalProperty,
    Record,
    Update,
    format_float,
)
from lso.telemetry.source import UnitInfo
from lso.tracking.transform import Transform
from lso.utils import precision

CARRIER_ID = 1
PLANE_ID = 2

EVENT_LANDED = "Landed"
EVENT_MESSAGE = "Message"

# Smallest change that is written, per T slot.
COORD_EPSILONS = {
    "longitude": 1e-7,
    "latitude": 1e-7,
    "altitude": 0.01,
    "u": 0.01,
    "v": 0.01,
    "roll": 0.1,
    "pitch": 0.1,
    "yaw": 0.1,
    "heading": 0.1,
}

# Values are snapped to the epsilons above, so a one-step change can come out
# a few ulps short of the epsilon.
_SLACK = 1e-6

MIN_FRAME_STEP = 0.01


def changed(a: float | None, b: float | None, epsilon: float) -> bool:
    if a is None and b is None:
        return False
    if a is None or b is None:
        return True
    return abs(a - b) >= epsilon * (1.0 - _SLACK)


class CoordsTracker:
    """Last written coordinates of one entity."""

    def __init__(self) -> None:
        self.known: Coords | None = None

    def remove_unchanged(self, coords: Coords) -> Coords:
        """Blank every slot of *coords* that did not change since last written.

        The first call passes everything through.
        """
        if self.known is None:
            self.known = Coords(**vars(coords))
            return coords

        out = Coords()
        for name, epsilon in COORD_EPSILONS.items():
            value = getattr(coords, name)
            if changed(value, getattr(self.known, name), epsilon):
                setattr(self.known, name, value)
                setattr(out, name, value)
        return out

    def reset(self) -> None:
        self.known = None


class FrameClock:
    """Hands out strictly increasing frame times."""

    def __init__(self) -> None:
        self.last: float | None = None

    def advance(self, time: float) -> float:
        if self.last is not None and time <= self.last:
            time = precision.time(self.last + MIN_FRAME_STEP)
        self.last = time
        return time


def tags(attrs: Iterable[str]) -> set[Tag]:
    """ACMI object tags for a DCS unit descriptor."""
    result: set[Tag] = set()
    for attr in attrs:
        if attr == "Ships":
            result.update((Tag.SEA, Tag.WATERCRAFT))
        elif attr == "AircraftCarrier":
            result.add(Tag.AIRCRAFT_CARRIER)
        elif attr == "Air":
            result.add(Tag.AIR)
        elif attr == "Planes":
            result.add(Tag.FIXED_WING)
    return result


def color(coalition: Coalition) -> Color:
    if coalition is Coalition.RED:
        return Color.RED
    if coalition is Coalition.BLUE:
        return Color.BLUE
    return Color.GREY


def initial_update(obj_id: int, unit: UnitInfo, attrs: Iterable[str]) -> Update:
    """Static properties of a recorded unit, written once up front."""
    props = {
        "Type": "+".join(sorted(t.value for t in tags(attrs))),
        "Name": unit.type,
        "Group": unit.group_name or "",
        "Color": color(unit.coalition).value,
    }
    if unit.player_name:
        props["Pilot"] = unit.player_name
    return Update(obj_id, props=props)


class RecordingMerger:
    """Builds the record stream of one carrier/plane recording."""

    def __init__(self) -> None:
        self.carrier_coords = CoordsTracker()
        self.plane_coords = CoordsTracker()
        self.clock = FrameClock()
        self.lat_ref: float | None = None
        self.lon_ref: float | None = None

    def _reference(self, carrier: Transform) -> list[Record]:
        if self.lat_ref is not None:
            return []
        self.lat_ref = carrier.lat
        self.lon_ref = carrier.lon
        return [
            GlobalProperty("ReferenceLatitude", format_float(self.lat_ref)),
            GlobalProperty("ReferenceLongitude", format_float(self.lon_ref)),
        ]

    def coords_for(self, transform: Transform) -> Coords:
        """Full coordinates of *transform*, lat/lon relative to the reference."""
        return Coords(
            longitude=precision.latlon(transform.lon - (self.lon_ref or 0.0)),
            latitude=precision.latlon(transform.lat - (self.lat_ref or 0.0)),
            altitude=transform.alt,
            roll=transform.roll,
            pitch=transform.pitch,
            yaw=transform.yaw,
            u=float(transform.position[0]),
            v=float(transform.position[2]),
            heading=transform.heading,
        )

    def _carrier_update(self, carrier: Transform) -> Update:
        coords = self.carrier_coords.remove_unchanged(self.coords_for(carrier))
        return Update(CARRIER_ID, coords=coords)

    def _plane_update(self, plane: Transform) -> Update:
        coords = self.plane_coords.remove_unchanged(self.coords_for(plane))
        props = {}
        if not math.isnan(plane.aoa):
            props["AOA"] = format_float(plane.aoa)
        return Update(PLANE_ID, coords=coords, props=props)

    @staticmethod
    def _written(*updates: Update) -> list[Record]:
        # nothing changed and no properties: the update would be a bare id
        return [u for u in updates if u.props or (u.coords is not None and not u.coords.is_empty())]

    def tick(self, carrier: Transform, plane: Transform) -> list[Record]:
        """Records for one pair of polled samples, in time order."""
        records = self._reference(carrier)
        carrier_update = self._carrier_update(carrier)
        plane_update = self._plane_update(plane)

        if abs(carrier.time - plane.time) < MIN_FRAME_STEP:
            records.append(Frame(self.clock.advance(carrier.time)))
            records.extend(self._written(carrier_update, plane_update))
        elif carrier.time < plane.time:
            records.append(Frame(self.clock.advance(carrier.time)))
            records.extend(self._written(carrier_update))
            records.append(Frame(self.clock.advance(plane.time)))
            records.extend(self._written(plane_update))
        else:
            records.append(Frame(self.clock.advance(plane.time)))
            records.extend(self._written(plane_update))
            records.append(Frame(self.clock.advance(carrier.time)))
            records.extend(self._written(carrier_update))
        return records

    def event(
        self,
        time: float,
        carrier: Transform,
        plane: Transform,
        kind: str,
        text: str | None = None,
    ) -> list[Record]:
        """Records for a mission event; both unit snapshots come with it."""
        records = self._reference(carrier)
        records.append(Frame(self.clock.advance(precision.time(time))))
        records.extend(self._written(self._carrier_update(carrier), self._plane_update(plane)))
        records.append(Event(kind, [format(PLANE_ID, "x"), format(CARRIER_ID, "x")], text))
        return records
