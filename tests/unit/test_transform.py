"""Tests for Transform construction and sparse updates."""

from __future__ import annotations

import math

import numpy as np
import pytest

from lso.tracking.transform import RawOrientation, RawPosition, RawVector, Transform


class TestFromTelemetry:
    def test_axis_fix(self):
        t = Transform.from_telemetry(1.0, velocity=RawVector(x=1.0, y=2.0, z=3.0))
        np.testing.assert_array_equal(t.velocity, [3.0, 2.0, 1.0])

    def test_position_from_map_coordinates(self):
        t = Transform.from_telemetry(1.0, position=RawPosition(alt=25.0, u=100.0, v=-50.0))
        np.testing.assert_array_equal(t.position, [100.0, 25.0, -50.0])
        assert t.alt == 25.0

    def test_precision_snapping(self):
        t = Transform.from_telemetry(
            12.346,
            position=RawPosition(lat=41.123456789, lon=-70.5, alt=20.1234, u=1.005, v=2.0),
            orientation=RawOrientation(heading=123.456, yaw=123.44, pitch=4.56, roll=-0.04),
        )
        assert t.time == 12.35
        assert t.lat == 41.1234568
        assert t.alt == 20.12
        assert t.heading == 123.5
        assert t.yaw == 123.4
        assert t.pitch == 4.6
        assert t.roll == -0.0

    def test_aoa_from_forward_and_velocity(self):
        t = Transform.from_telemetry(
            1.0,
            orientation=RawOrientation(heading=0.0, yaw=0.0, pitch=5.0),
            velocity=RawVector(x=70.0),  # north, level
        )
        assert t.aoa == 5.0

    def test_explicit_forward_vector(self):
        t = Transform.from_telemetry(
            1.0,
            orientation=RawOrientation(forward=RawVector(x=0.0, y=0.0, z=1.0)),
            velocity=RawVector(z=10.0),
        )
        np.testing.assert_array_equal(t.forward, [1.0, 0.0, 0.0])
        assert t.aoa == 0.0

    def test_stationary_aoa_is_nan(self):
        t = Transform.from_telemetry(1.0)
        assert math.isnan(t.aoa)
        assert not t.has_valid_aoa

    def test_immutable(self):
        t = Transform.empty()
        with pytest.raises(AttributeError):
            t.time = 5.0


class TestWithUpdate:
    def test_omitted_fields_kept(self):
        t = Transform.from_telemetry(
            1.0,
            position=RawPosition(lat=1.0, lon=2.0, alt=3.0, u=4.0, v=5.0),
            orientation=RawOrientation(heading=90.0, yaw=90.0),
        )
        u = t.with_update(2.0, alt=10.0)
        assert u.time == 2.0
        assert u.lat == 1.0
        assert u.heading == 90.0
        np.testing.assert_array_equal(u.position, [4.0, 10.0, 5.0])

    def test_velocity_from_position_delta(self):
        t = Transform.empty().with_update(10.0, alt=0.0, u=0.0, v=0.0)
        u = t.with_update(10.5, u=5.0, v=-10.0)
        np.testing.assert_allclose(u.velocity, [10.0, 0.0, -20.0])

    def test_first_update_has_no_velocity(self):
        t = Transform.empty().with_update(10.0, u=500.0)
        np.testing.assert_array_equal(t.velocity, [0.0, 0.0, 0.0])

    def test_orientation_change_recomputes_rotation(self):
        t = Transform.empty().with_update(1.0, heading=90.0, yaw=90.0)
        np.testing.assert_allclose(t.forward, [1.0, 0.0, 0.0], atol=1e-12)
        np.testing.assert_allclose(t.rotation.rotate(np.array([0.0, 0.0, 1.0])), [1.0, 0.0, 0.0], atol=1e-12)

    def test_without_orientation_keeps_rotation(self):
        t = Transform.empty().with_update(1.0, heading=45.0, yaw=45.0)
        u = t.with_update(2.0, u=1.0)
        assert u.rotation is t.rotation

    def test_snaps_values(self):
        t = Transform.empty().with_update(1.004, lat=1.123456789, alt=2.346, roll=0.26)
        assert t.time == 1.0
        assert t.lat == 1.1234568
        assert t.alt == 2.35
        assert t.roll == 0.3

    def test_with_aoa(self):
        t = Transform.empty().with_aoa(8.123)
        assert t.aoa == 8.12


class TestDerived:
    def test_speed(self):
        t = Transform.from_telemetry(1.0, velocity=RawVector(x=3.0, z=4.0))
        assert t.speed == 5.0

    def test_to_dict(self):
        d = Transform.from_telemetry(1.0, position=RawPosition(u=1.0, v=2.0)).to_dict()
        assert d["position"] == [1.0, 0.0, 2.0]
        assert d["time"] == 1.0
