"""Approach tracker: glide slope / lineup deviation and touchdown grading.

A :class:`Track` is fed aligned (carrier, plane) samples in time order via
:meth:`Track.next`.  It projects the plane onto the angled deck's approach
frame, records one :class:`Datum` per sample and decides when to stop.
Touchdown is normally signalled from outside (:meth:`Track.landed`, driven by
the mission's land event); ``auto_touchdown`` detects it from the hook height
instead, for recordings that carry no land event.
"""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass
from typing import Any

import numpy as np

from lso.core.config import to_plain_dict
from lso.core.types import GradingKind
from lso.tracking.rig import AirplaneInfo, CarrierInfo
from lso.tracking.transform import Transform
from lso.utils.vector import UNIT_X, UNIT_Z, deck_axis, horizontal

logger = logging.getLogger(__name__)

WIRE_PATTERN = re.compile(r"WIRE# (\d{1,2})")


@dataclass(frozen=True)
class Datum:
    """One approach sample.

    ``x`` is the distance to the aim point along the deck centerline, ``y``
    the cross-track deviation (negative: left of centerline), ``alt`` the hook
    height above the deck (never negative).
    """

    x: float
    y: float
    aoa: float
    alt: float

    def to_dict(self) -> dict[str, float]:
        return {"x": self.x, "y": self.y, "aoa": self.aoa, "alt": self.alt}

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Datum:
        return cls(x=d["x"], y=d["y"], aoa=d["aoa"], alt=d["alt"])


@dataclass(frozen=True)
class Grading:
    kind: GradingKind
    cable: int | None = None
    cable_estimated: int | None = None

    @classmethod
    def unknown(cls) -> Grading:
        return cls(GradingKind.UNKNOWN)

    @classmethod
    def bolter(cls) -> Grading:
        return cls(GradingKind.BOLTER)

    @classmethod
    def recovered(cls, cable: int | None, cable_estimated: int | None = None) -> Grading:
        return cls(GradingKind.RECOVERED, cable=cable, cable_estimated=cable_estimated)

    def summary(self) -> str:
        """Short human readable grade, e.g. ``#3``."""
        if self.kind is GradingKind.BOLTER:
            return "Bolter"
        if self.kind is GradingKind.RECOVERED:
            return f"#{self.cable}" if self.cable is not None else "-"
        return "unknown"

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind.value,
            "cable": self.cable,
            "cable_estimated": self.cable_estimated,
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Grading:
        return cls(
            GradingKind(d["kind"]),
            cable=d.get("cable"),
            cable_estimated=d.get("cable_estimated"),
        )


@dataclass(frozen=True)
class TrackResult:
    pilot_name: str
    glide_slope: float
    grading: Grading
    dcs_grading: str | None = None
    datums: tuple[Datum, ...] = ()
    plane_type: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "pilot_name": self.pilot_name,
            "glide_slope": self.glide_slope,
            "grading": self.grading.to_dict(),
            "dcs_grading": self.dcs_grading,
            "datums": [d.to_dict() for d in self.datums],
            "plane_type": self.plane_type,
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> TrackResult:
        return cls(
            pilot_name=d["pilot_name"],
            glide_slope=d["glide_slope"],
            grading=Grading.from_dict(d["grading"]),
            dcs_grading=d.get("dcs_grading"),
            datums=tuple(Datum.from_dict(x) for x in d.get("datums", [])),
            plane_type=d.get("plane_type"),
        )


@dataclass(frozen=True)
class TrackParams:
    """Empirically tuned tracker constants."""

    # Stop once the distance to the aim point grew this much past its minimum.
    stop_distance_m: float = 100.0
    # Forward nudge of the touchdown point; the land event fires late.
    cable_compensation_m: float = 3.0
    # Hook height counted as touchdown when ``auto_touchdown`` is on.
    touchdown_alt_m: float = 0.09
    auto_touchdown: bool = False

    @classmethod
    def from_omegaconf(cls, cfg: Any, auto_touchdown: bool = False) -> TrackParams:
        cfg = to_plain_dict(cfg)
        return cls(
            stop_distance_m=float(cfg.get("stop_distance_m", 100.0)),
            cable_compensation_m=float(cfg.get("cable_compensation_m", 3.0)),
            touchdown_alt_m=float(cfg.get("touchdown_alt_m", 0.09)),
            auto_touchdown=auto_touchdown,
        )


def landing_position(carrier: Transform, carrier_info: CarrierInfo, plane_info: AirplaneInfo) -> np.ndarray:
    """World position of the plane's origin at the optimal hook touchdown."""
    offset = carrier_info.optimal_landing_offset(plane_info)
    return carrier.position + carrier.rotation.rotate(offset)


def hook_altitude(plane: Transform, carrier_info: CarrierInfo, plane_info: AirplaneInfo) -> float:
    """Hook height above the deck; negative once the hook is below deck level."""
    hook_offset = plane.rotation.rotate(plane_info.hook)
    return plane.alt - carrier_info.deck_altitude + float(hook_offset[1])


def estimate_cable(
    carrier: Transform,
    plane: Transform,
    carrier_info: CarrierInfo,
    plane_info: AirplaneInfo,
    compensation_m: float = 3.0,
) -> int | None:
    """Guess which wire the hook caught at touchdown.

    The first wire (1 to 4) still ahead of the touchdown point along the
    landing direction is the one caught.  ``None`` means the hook passed all
    four wires.
    """
    landing_dir = deck_axis(carrier.heading, carrier_info.deck_angle).rotate(UNIT_Z)
    touchdown = plane.position + plane.rotation.rotate(plane_info.hook)
    touchdown = touchdown + landing_dir * compensation_m

    for nr in range(1, 5):
        mid_cable = carrier.position + carrier.rotation.rotate(carrier_info.cable_midpoint(nr))
        ray_to_cable = mid_cable - touchdown
        dot = float(np.dot(ray_to_cable, landing_dir))
        logger.debug(
            "cable candidate %d: distance=%.2f dot=%.2f",
            nr,
            float(np.linalg.norm(ray_to_cable)),
            dot,
        )
        if dot > 0.0:
            return nr

    return None


class Track:
    """Tracks one approach of a plane to a carrier."""

    def __init__(
        self,
        pilot_name: str,
        carrier_info: CarrierInfo,
        plane_info: AirplaneInfo,
        params: TrackParams | None = None,
    ):
        self.pilot_name = pilot_name
        self.carrier_info = carrier_info
        self.plane_info = plane_info
        self.params = params or TrackParams()
        self.previous_distance = math.inf
        self.datums: list[Datum] = []
        self.grading: Grading | None = None
        self.dcs_grading: str | None = None

    def next(self, carrier: Transform, plane: Transform) -> bool:
        """Process the next sample pair.  Returns False once tracking should stop."""
        landing_pos = landing_position(carrier, self.carrier_info, self.plane_info)
        ray_from_plane_to_carrier = horizontal(landing_pos - plane.position)
        distance = float(np.linalg.norm(ray_from_plane_to_carrier))

        if math.isnan(distance) or not plane.has_valid_aoa:
            logger.debug("skipping sample without valid distance or AOA at t=%.2f", plane.time)
            return True

        # Stop once the distance to the aim point is increasing and has grown
        # past the threshold since it last decreased.
        if distance < self.previous_distance:
            self.previous_distance = distance
        elif distance - self.previous_distance > self.params.stop_distance_m:
            if self.grading is not None:
                logger.debug("bolter, distance_in_m=%.1f", distance)
                self.grading = Grading.bolter()
            else:
                logger.debug("stop tracking, distance_in_m=%.1f", distance)
            return False

        # Already landed; only watching for a bolter.
        if self.grading is not None:
            return True

        fb_rot = deck_axis(carrier.heading, self.carrier_info.deck_angle)
        fb = fb_rot.rotate(UNIT_Z)

        x = float(np.dot(ray_from_plane_to_carrier, fb))
        y = math.sqrt(max(distance**2 - x**2, 0.0))

        # Left or right of the centerline
        a = fb_rot.rotate(UNIT_X)
        if float(np.dot(ray_from_plane_to_carrier, a)) > 0.0:
            y = -y

        alt = hook_altitude(plane, self.carrier_info, self.plane_info)
        self.datums.append(Datum(x=x, y=y, aoa=plane.aoa, alt=max(alt, 0.0)))

        if self.params.auto_touchdown and alt <= self.params.touchdown_alt_m:
            logger.debug("touchdown detected, distance_in_m=%.1f alt=%.2f", distance, alt)
            self.landed(carrier, plane)
            return False

        return True

    def landed(self, carrier: Transform, plane: Transform) -> None:
        """Record the touchdown; only the first call counts."""
        if self.grading is not None:
            return
        cable = estimate_cable(
            carrier,
            plane,
            self.carrier_info,
            self.plane_info,
            self.params.cable_compensation_m,
        )
        logger.debug("landed, estimated cable %s", cable)
        self.grading = Grading.recovered(cable)

    def set_dcs_grading(self, dcs_grading: str) -> None:
        self.dcs_grading = dcs_grading

    @property
    def is_graded(self) -> bool:
        return self.grading is not None

    def finish(self) -> TrackResult:
        """Finalize into a TrackResult.

        A ``WIRE# n`` token in the DCS LSO comment is authoritative for the
        caught wire; the estimate is then kept as ``cable_estimated``.
        """
        grading = self.grading or Grading.unknown()
        if grading.kind is GradingKind.RECOVERED and self.dcs_grading is not None:
            match = WIRE_PATTERN.search(self.dcs_grading)
            if match is not None:
                grading = Grading.recovered(int(match.group(1)), cable_estimated=grading.cable)

        return TrackResult(
            pilot_name=self.pilot_name,
            glide_slope=self.plane_info.glide_slope,
            grading=grading,
            dcs_grading=self.dcs_grading,
            datums=tuple(self.datums),
            plane_type=self.plane_info.name,
        )
