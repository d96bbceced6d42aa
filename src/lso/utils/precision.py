"""Fixed decimal precision per value category.

Live telemetry and values re-read from a recorded ACMI log must produce
identical tracker input, so every Transform is snapped to the precision the
log is written with.
"""

from __future__ import annotations

import math

LATLON_DECIMALS = 7
DISTANCE_DECIMALS = 2
ANGLE_DECIMALS = 1
AOA_DECIMALS = 2
TIME_DECIMALS = 2


def max_precision(value: float, decimals: int) -> float:
    """Round *value* half away from zero to *decimals* places.

    ``round()`` rounds half to even, which would disagree with the values
    written to the log for exact .5 cases.  NaN and infinities pass through.
    """
    if not math.isfinite(value):
        return value
    p = 10.0**decimals
    return math.copysign(math.floor(abs(value) * p + 0.5) / p, value)


def latlon(value: float) -> float:
    return max_precision(value, LATLON_DECIMALS)


def distance(value: float) -> float:
    return max_precision(value, DISTANCE_DECIMALS)


def angle(value: float) -> float:
    return max_precision(value, ANGLE_DECIMALS)


def aoa(value: float) -> float:
    return max_precision(value, AOA_DECIMALS)


def time(value: float) -> float:
    return max_precision(value, TIME_DECIMALS)
