"""Core enums shared across the LSO package."""

from __future__ import annotations

import enum


class AoaRating(enum.Enum):
    """Approach speed bracket derived from the angle of attack."""

    FAST = "fast"
    SLIGHTLY_FAST = "slightly_fast"
    ON_SPEED = "on_speed"
    SLIGHTLY_SLOW = "slightly_slow"
    SLOW = "slow"


class GradingKind(enum.Enum):
    UNKNOWN = "unknown"
    BOLTER = "bolter"
    RECOVERED = "recovered"


class Coalition(enum.Enum):
    NEUTRAL = "neutral"
    RED = "red"
    BLUE = "blue"
    ALL = "all"


class GroupCategory(enum.Enum):
    AIRPLANE = "airplane"
    HELICOPTER = "helicopter"
    GROUND = "ground"
    SHIP = "ship"
    TRAIN = "train"


class Tag(enum.Enum):
    """ACMI object type tags written for the tracked units."""

    AIR = "Air"
    SEA = "Sea"
    FIXED_WING = "FixedWing"
    WATERCRAFT = "Watercraft"
    AIRCRAFT_CARRIER = "AircraftCarrier"


class Color(enum.Enum):
    """ACMI object colours."""

    RED = "Red"
    BLUE = "Blue"
    GREY = "Grey"

