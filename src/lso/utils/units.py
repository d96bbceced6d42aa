"""Unit conversions used at the edges of the tracker.

Everything inside the tracker is meters and degrees; feet and nautical
miles only appear in thresholds and log output.
"""

from __future__ import annotations

METERS_PER_NM = 1852.0
FEET_PER_METER = 3.28084
FEET_PER_NM = 6076.118


def m_to_nm(m: float) -> float:
    return m / METERS_PER_NM


def nm_to_m(nm: float) -> float:
    return nm * METERS_PER_NM


def m_to_ft(m: float) -> float:
    return m * FEET_PER_METER


def ft_to_m(ft: float) -> float:
    return ft / FEET_PER_METER


def ft_to_nm(ft: float) -> float:
    return ft / FEET_PER_NM
