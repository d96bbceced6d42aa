"""3D vector and rotation helpers for the carrier/plane working frame.

Convention: +x east, +y up, +z north.  A rotation "in the ab plane" by a
positive angle turns axis a toward axis b, so ``rotation_xz(-heading)``
turns north (+z) onto the compass heading.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

import numpy as np

UNIT_X = np.array([1.0, 0.0, 0.0])
UNIT_Y = np.array([0.0, 1.0, 0.0])
UNIT_Z = np.array([0.0, 0.0, 1.0])


def vec3(x: float, y: float, z: float) -> np.ndarray:
    return np.array([x, y, z], dtype=np.float64)


def normalized(v: np.ndarray) -> np.ndarray:
    """Unit vector along *v*.

    A zero vector yields NaN components, same as dividing by its magnitude.
    """
    with np.errstate(invalid="ignore", divide="ignore"):
        return v / np.linalg.norm(v)


def horizontal(v: np.ndarray) -> np.ndarray:
    """Copy of *v* with the vertical component dropped."""
    return np.array([v[0], 0.0, v[2]], dtype=np.float64)


def angle_between_deg(a: np.ndarray, b: np.ndarray) -> float:
    """Angle between unit vector *a* and the direction of *b* in degrees.

    NaN when *b* has zero length.
    """
    dot = float(np.dot(a, normalized(b)))
    if math.isnan(dot):
        return math.nan
    return math.degrees(math.acos(max(-1.0, min(1.0, dot))))


def _plane_rotation(a: int, b: int, angle_rad: float) -> np.ndarray:
    c = math.cos(angle_rad)
    s = math.sin(angle_rad)
    m = np.eye(3)
    m[a, a] = c
    m[b, a] = s
    m[a, b] = -s
    m[b, b] = c
    return m


@dataclass(frozen=True)
class Rotation3:
    """Proper rotation of the working frame, stored as a 3x3 matrix."""

    matrix: np.ndarray

    @classmethod
    def identity(cls) -> Rotation3:
        return cls(np.eye(3))

    @classmethod
    def rotation_xy(cls, angle_rad: float) -> Rotation3:
        return cls(_plane_rotation(0, 1, angle_rad))

    @classmethod
    def rotation_xz(cls, angle_rad: float) -> Rotation3:
        return cls(_plane_rotation(0, 2, angle_rad))

    @classmethod
    def rotation_yz(cls, angle_rad: float) -> Rotation3:
        return cls(_plane_rotation(1, 2, angle_rad))

    @classmethod
    def from_euler_angles(cls, roll: float, pitch: float, yaw: float) -> Rotation3:
        """Compose roll (xy plane), then pitch (yz plane), then yaw (xz plane).

        Angles in radians.
        """
        m = (
            _plane_rotation(0, 2, yaw)
            @ _plane_rotation(1, 2, pitch)
            @ _plane_rotation(0, 1, roll)
        )
        return cls(m)

    @classmethod
    def from_attitude_deg(cls, roll: float, pitch: float, heading: float) -> Rotation3:
        """Body rotation for a DCS attitude.

        DCS headings grow clockwise, so all three angles are negated before
        composing.
        """
        return cls.from_euler_angles(
            math.radians(-roll),
            math.radians(-pitch),
            math.radians(-heading),
        )

    def rotate(self, v: np.ndarray) -> np.ndarray:
        return self.matrix @ v

    def __matmul__(self, other: Rotation3) -> Rotation3:
        return Rotation3(self.matrix @ other.matrix)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Rotation3):
            return NotImplemented
        return bool(np.array_equal(self.matrix, other.matrix))

    def __hash__(self) -> int:
        return hash(self.matrix.tobytes())


def forward_from_angles(yaw_deg: float, pitch_deg: float) -> np.ndarray:
    """Unit forward vector for a yaw (clockwise from north) and pitch."""
    yaw = math.radians(yaw_deg)
    pitch = math.radians(pitch_deg)
    return vec3(
        math.sin(yaw) * math.cos(pitch),
        math.sin(pitch),
        math.cos(yaw) * math.cos(pitch),
    )


def deck_axis(heading_deg: float, deck_angle_deg: float) -> Rotation3:
    """Rotation that turns +z onto the angled deck's landing direction."""
    return Rotation3.rotation_xz(math.radians(-(heading_deg - deck_angle_deg)))
