"""Static carrier and airplane geometry.

Connector positions (hook, cable pendants) were read from the DCS model
connectors (``POINT_TROS_0n_0m``) and are relative to the unit's origin in
the working frame (+x east/right, +y up, +z forward).  The set of supported
unit types is fixed; ``by_type`` returns ``None`` for anything else and the
unit must not be tracked.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

import numpy as np

from lso.core.types import AoaRating
from lso.utils.vector import Rotation3, vec3

Pendants = tuple[np.ndarray, np.ndarray]


def _point(x: float, y: float, z: float) -> np.ndarray:
    p = vec3(x, y, z)
    p.flags.writeable = False
    return p


@dataclass(frozen=True)
class AoaBrackets:
    """AOA indexer thresholds in degrees.

    ``aoa <= fast_max`` is fast, ``<= slightly_fast_max`` slightly fast,
    ``< on_speed_below`` on speed, ``< slightly_slow_below`` slightly slow,
    anything above slow.
    """

    fast_max: float
    slightly_fast_max: float
    on_speed_below: float
    slightly_slow_below: float

    def rate(self, aoa: float) -> AoaRating:
        if aoa <= self.fast_max:
            return AoaRating.FAST
        if aoa <= self.slightly_fast_max:
            return AoaRating.SLIGHTLY_FAST
        if aoa < self.on_speed_below:
            return AoaRating.ON_SPEED
        if aoa < self.slightly_slow_below:
            return AoaRating.SLIGHTLY_SLOW
        return AoaRating.SLOW


@dataclass(frozen=True, eq=False)
class CarrierInfo:
    name: str
    # Counter-clockwise offset of the angled deck from the base recovery course, degrees.
    deck_angle: float
    deck_altitude: float
    # Four (left, right) pendant pairs, wire 1 first.
    cables: tuple[Pendants, Pendants, Pendants, Pendants]

    def cable_midpoint(self, number: int) -> np.ndarray:
        """Midpoint between both pendants of wire *number* (1-4)."""
        left, right = self.cables[number - 1]
        return (left + right) / 2.0

    def optimal_landing_offset(self, plane: AirplaneInfo) -> np.ndarray:
        """Offset from the carrier origin where the ideal glide path hits the deck.

        The optimal hook touchdown point is halfway between the second and the
        third wire (NAVAIR 00-80T-104 4.2.8); the plane's origin sits hook-offset
        away from it along the glide slope.
        """
        touchdown_at = (self.cables[1][0] + self.cables[2][1]) / 2.0
        hook_offset = Rotation3.rotation_yz(-math.radians(plane.glide_slope)).rotate(
            plane.hook
        )
        return touchdown_at - hook_offset

    @staticmethod
    def by_type(type_name: str) -> CarrierInfo | None:
        return _CARRIERS.get(type_name)


@dataclass(frozen=True, eq=False)
class AirplaneInfo:
    name: str
    # Hook position relative to the airplane's origin.
    hook: np.ndarray
    # Optimal glide slope in degrees.
    glide_slope: float
    aoa_brackets: AoaBrackets

    def aoa_rating(self, aoa: float) -> AoaRating:
        return self.aoa_brackets.rate(aoa)

    @staticmethod
    def by_type(type_name: str) -> AirplaneInfo | None:
        return _AIRPLANES.get(type_name)


# CoreMods\tech\USS_Nimitz\scripts\USS_Nimitz_RunwaysAndRoutes.lua
NIMITZ = CarrierInfo(
    name="Nimitz",
    deck_angle=9.1359,
    deck_altitude=20.1494,
    cables=(
        (_point(-17.622131, 20.201731, -112.129128), _point(18.445099, 20.201729, -106.040421)),
        (_point(-19.584789, 20.201731, -99.914261), _point(16.519514, 20.201729, -93.864029)),
        (_point(-21.578857, 20.201731, -87.524025), _point(14.471450, 20.201731, -81.399986)),
        (_point(-23.609934, 20.201731, -74.960480), _point(12.444860, 20.201729, -68.854492)),
    ),
)

FORRESTAL = CarrierInfo(
    name="Forrestal",
    deck_angle=9.42,
    deck_altitude=18.46,
    cables=(
        (_point(-17.749493, 18.474249, -96.792412), _point(17.089462, 18.474247, -90.162186)),
        (_point(-19.516848, 18.475485, -87.192558), _point(15.311986, 18.475483, -80.510368)),
        (_point(-21.246920, 18.482229, -76.618980), _point(13.582755, 18.482227, -69.941109)),
        (_point(-23.128010, 18.491688, -66.396812), _point(11.704433, 18.491686, -59.733154)),
    ),
)

# Hornet indexer, see the VRS navigation tutorial.  The T-45 currently shares it.
_HORNET_BRACKETS = AoaBrackets(
    fast_max=6.9, slightly_fast_max=7.4, on_speed_below=8.8, slightly_slow_below=9.3
)

FA18C = AirplaneInfo(
    name="FA-18C_hornet",
    hook=_point(0.0, -2.240897, -7.237348),
    glide_slope=3.5,
    aoa_brackets=_HORNET_BRACKETS,
)

# Tomcat units converted to degrees: degrees = units / 1.0989 - 3.01
F14 = AirplaneInfo(
    name="F-14B",
    hook=_point(0.0, -1.978941, -6.563727),
    glide_slope=3.5,
    aoa_brackets=AoaBrackets(
        fast_max=9.7, slightly_fast_max=10.2, on_speed_below=11.1, slightly_slow_below=11.6
    ),
)

T45 = AirplaneInfo(
    name="T-45",
    hook=_point(0.0, -1.778766, -4.782536),
    glide_slope=3.5,
    aoa_brackets=_HORNET_BRACKETS,
)

_CARRIERS: dict[str, CarrierInfo] = {
    "CVN_71": NIMITZ,
    "CVN_72": NIMITZ,
    "CVN_73": NIMITZ,
    "CVN_75": NIMITZ,
    "Stennis": NIMITZ,
    "Forrestal": FORRESTAL,
}

_AIRPLANES: dict[str, AirplaneInfo] = {
    "FA-18C_hornet": FA18C,
    "F-14A-135-GR": F14,
    "F-14B": F14,
    "T-45": T45,
}

SUPPORTED_CARRIERS = frozenset(_CARRIERS)
SUPPORTED_AIRPLANES = frozenset(_AIRPLANES)
