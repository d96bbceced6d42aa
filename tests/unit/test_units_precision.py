"""Tests for unit conversions and precision snapping."""

from __future__ import annotations

import math

import pytest

from lso.utils import precision
from lso.utils.units import ft_to_m, ft_to_nm, m_to_ft, m_to_nm, nm_to_m


class TestUnits:
    def test_nm_roundtrip(self):
        assert nm_to_m(1.5) == pytest.approx(2778.0)
        assert m_to_nm(1852.0) == 1.0

    def test_feet(self):
        assert ft_to_m(500.0) == pytest.approx(152.4, abs=0.01)
        assert m_to_ft(ft_to_m(300.0)) == pytest.approx(300.0)

    def test_ft_to_nm(self):
        assert ft_to_nm(6076.118) == pytest.approx(1.0)


class TestMaxPrecision:
    def test_half_rounds_away_from_zero(self):
        assert precision.max_precision(0.25, 1) == 0.3
        assert precision.max_precision(-0.25, 1) == -0.3
        assert precision.max_precision(2.5, 0) == 3.0

    def test_categories(self):
        assert precision.latlon(41.123456789) == 41.1234568
        assert precision.distance(12.3456) == 12.35
        assert precision.angle(359.96) == 360.0
        assert precision.aoa(8.123) == 8.12
        assert precision.time(100.004) == 100.0

    def test_non_finite_passthrough(self):
        assert math.isnan(precision.aoa(math.nan))
        assert precision.distance(math.inf) == math.inf

    def test_idempotent(self):
        value = precision.distance(123.456789)
        assert precision.distance(value) == value
