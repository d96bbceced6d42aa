"""Per-entity kinematic snapshot in the tracker's working frame.

DCS reports vectors in a right-handed system where +x points north.  The
working frame used everywhere else has +x east, +y up and +z north, so raw
vectors are permuted to ``(z, y, x)`` on the way in.

Every numeric field is snapped to the precision it is written to the ACMI log
with (see :mod:`lso.utils.precision`).  A Transform built from live telemetry
and one re-built from the recorded log therefore feed identical numbers into
the tracker.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field, replace

import numpy as np

from lso.utils import precision
from lso.utils.vector import Rotation3, angle_between_deg, forward_from_angles, vec3


@dataclass(frozen=True)
class RawVector:
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    def fixed(self) -> np.ndarray:
        """Convert from the north-is-+x system to the working frame."""
        return vec3(self.z, self.y, self.x)


@dataclass(frozen=True)
class RawPosition:
    lat: float = 0.0
    lon: float = 0.0
    alt: float = 0.0
    # Flat-earth map coordinates of the mission theatre, meters.
    u: float = 0.0
    v: float = 0.0


@dataclass(frozen=True)
class RawOrientation:
    heading: float = 0.0
    yaw: float = 0.0
    pitch: float = 0.0
    roll: float = 0.0
    forward: RawVector | None = None


@dataclass(frozen=True, eq=False)
class Transform:
    """Immutable kinematic sample of one unit.

    Angles are degrees, distances meters.  ``time`` is seconds since the
    scenario started.
    """

    position: np.ndarray = field(default_factory=lambda: vec3(0.0, 0.0, 0.0))
    forward: np.ndarray = field(default_factory=lambda: vec3(0.0, 0.0, 1.0))
    velocity: np.ndarray = field(default_factory=lambda: vec3(0.0, 0.0, 0.0))
    rotation: Rotation3 = field(default_factory=Rotation3.identity)
    heading: float = 0.0
    yaw: float = 0.0
    pitch: float = 0.0
    roll: float = 0.0
    lat: float = 0.0
    lon: float = 0.0
    alt: float = 0.0
    aoa: float = 0.0
    time: float = 0.0

    @classmethod
    def empty(cls) -> Transform:
        return cls()

    @classmethod
    def from_telemetry(
        cls,
        time: float,
        position: RawPosition | None = None,
        orientation: RawOrientation | None = None,
        velocity: RawVector | None = None,
    ) -> Transform:
        """Build a Transform from one (possibly partial) telemetry sample."""
        position = position or RawPosition()
        orientation = orientation or RawOrientation()
        velocity_vec = (velocity or RawVector()).fixed()

        heading = precision.angle(orientation.heading)
        yaw = precision.angle(orientation.yaw)
        pitch = precision.angle(orientation.pitch)
        roll = precision.angle(orientation.roll)

        if orientation.forward is not None:
            forward = orientation.forward.fixed()
        else:
            forward = forward_from_angles(yaw, pitch)

        alt = precision.distance(position.alt)
        return cls(
            position=vec3(precision.distance(position.u), alt, precision.distance(position.v)),
            forward=forward,
            velocity=velocity_vec,
            rotation=Rotation3.from_attitude_deg(roll, pitch, heading),
            heading=heading,
            yaw=yaw,
            pitch=pitch,
            roll=roll,
            lat=precision.latlon(position.lat),
            lon=precision.latlon(position.lon),
            alt=alt,
            aoa=precision.aoa(angle_between_deg(forward, velocity_vec)),
            time=precision.time(time),
        )

    def with_update(
        self,
        time: float,
        *,
        lat: float | None = None,
        lon: float | None = None,
        alt: float | None = None,
        u: float | None = None,
        v: float | None = None,
        roll: float | None = None,
        pitch: float | None = None,
        yaw: float | None = None,
        heading: float | None = None,
    ) -> Transform:
        """Apply a sparse update, as read back from a replay log.

        Omitted fields keep their previous value.  Forward vector and rotation
        are only recomputed when an orientation field changed; the velocity is
        derived from the position change since the previous sample.
        """
        time = precision.time(time)
        changes: dict = {"time": time}

        orientation_changed = False
        for name, value in (("roll", roll), ("pitch", pitch), ("yaw", yaw), ("heading", heading)):
            if value is not None:
                changes[name] = precision.angle(value)
                orientation_changed = True

        if lat is not None:
            changes["lat"] = precision.latlon(lat)
        if lon is not None:
            changes["lon"] = precision.latlon(lon)

        x, y, z = (float(c) for c in self.position)
        if alt is not None:
            y = precision.distance(alt)
            changes["alt"] = y
        if u is not None:
            x = precision.distance(u)
        if v is not None:
            z = precision.distance(v)
        position = vec3(x, y, z)
        changes["position"] = position

        dt = time - self.time
        if dt > 0 and self.time > 0:
            changes["velocity"] = (position - self.position) / dt

        updated = replace(self, **changes)
        if orientation_changed:
            updated = replace(
                updated,
                forward=forward_from_angles(updated.yaw, updated.pitch),
                rotation=Rotation3.from_attitude_deg(updated.roll, updated.pitch, updated.heading),
            )
        return updated

    def with_aoa(self, aoa: float) -> Transform:
        return replace(self, aoa=precision.aoa(aoa))

    @property
    def speed(self) -> float:
        return float(np.linalg.norm(self.velocity))

    @property
    def has_valid_aoa(self) -> bool:
        return not math.isnan(self.aoa)

    def to_dict(self) -> dict:
        return {
            "time": self.time,
            "lat": self.lat,
            "lon": self.lon,
            "alt": self.alt,
            "position": self.position.tolist(),
            "heading": self.heading,
            "yaw": self.yaw,
            "pitch": self.pitch,
            "roll": self.roll,
            "aoa": self.aoa,
        }

