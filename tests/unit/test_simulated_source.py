"""Tests for the scripted telemetry source and approach scenarios."""

from __future__ import annotations

import asyncio

import numpy as np
import pytest

from lso.core.errors import EntityNotFoundError, TelemetryError
from lso.telemetry.scenario import ApproachScenario, approach_samples, demo_source, populate
from lso.telemetry.simulated import SimulatedTelemetrySource
from lso.telemetry.source import BirthEvent, LandEvent, LandingQualityMarkEvent, TelemetrySource, UnitInfo
from lso.tracking.attempt import is_recovery_attempt
from lso.tracking.track import hook_altitude
from lso.tracking.transform import Transform


def _transforms(n: int) -> list[Transform]:
    return [Transform.empty().with_update(1.0 + i, u=float(i)) for i in range(n)]


class TestSimulatedTelemetrySource:
    def test_satisfies_protocol(self):
        assert isinstance(SimulatedTelemetrySource(), TelemetrySource)

    @pytest.mark.asyncio
    async def test_script_consumed_per_poll(self):
        source = SimulatedTelemetrySource()
        source.add_unit(UnitInfo("a", "T-45"), transforms=_transforms(3))
        times = [(await source.get_transform("a")).time for _ in range(5)]
        assert times == [1.0, 2.0, 3.0, 3.0, 3.0]
        assert source.polls("a") == 5

    @pytest.mark.asyncio
    async def test_unknown_unit(self):
        source = SimulatedTelemetrySource()
        with pytest.raises(EntityNotFoundError):
            await source.get_transform("ghost")

    @pytest.mark.asyncio
    async def test_removed_unit(self):
        source = SimulatedTelemetrySource()
        source.add_unit(UnitInfo("a", "T-45"))
        source.remove_unit("a")
        with pytest.raises(EntityNotFoundError):
            await source.get_unit("a")

    @pytest.mark.asyncio
    async def test_fail_next(self):
        source = SimulatedTelemetrySource()
        source.add_unit(UnitInfo("a", "T-45"))
        source.fail_next()
        with pytest.raises(TelemetryError):
            await source.list_units()
        assert [u.name for u in await source.list_units()] == ["a"]

    @pytest.mark.asyncio
    async def test_metadata(self):
        source = SimulatedTelemetrySource(mission_name="Case I")
        source.add_unit(UnitInfo("a", "T-45"), descriptor=["Air", "Planes"])
        assert await source.get_mission_name() == "Case I"
        assert await source.get_scenario_start_time() == "2021-11-11T14:00:00Z"
        assert await source.get_descriptor("a") == ["Air", "Planes"]

    @pytest.mark.asyncio
    async def test_event_stream(self):
        source = SimulatedTelemetrySource()
        events = source.stream_events()
        source.add_unit(UnitInfo("a", "T-45"), announce=True)
        source.close()
        received = [e async for e in events]
        assert received == [BirthEvent(time=0.0, unit=UnitInfo("a", "T-45"))]

    @pytest.mark.asyncio
    async def test_emit_after_polls(self):
        source = SimulatedTelemetrySource()
        source.add_unit(UnitInfo("a", "T-45"), transforms=_transforms(3))
        events = source.stream_events()
        marker = BirthEvent(time=2.0, unit=UnitInfo("b", "T-45"))
        source.emit_after("a", 2, marker)

        await source.get_transform("a")
        await source.get_transform("a")
        assert await asyncio.wait_for(events.__anext__(), 1.0) == marker
        await events.aclose()


class TestApproachScenario:
    def test_samples_aligned(self, trap_scenario):
        samples = approach_samples(trap_scenario)
        assert len(samples.carrier) == len(samples.plane)
        assert [c.time for c in samples.carrier] == [p.time for p in samples.plane]
        assert samples.touchdown == 100

    def test_glide_path_ends_on_deck(self, trap_scenario, carrier_info, plane_info):
        samples = approach_samples(trap_scenario)
        k = samples.touchdown
        assert hook_altitude(samples.plane[k], carrier_info, plane_info) == pytest.approx(0.0, abs=0.01)
        assert hook_altitude(samples.plane[k - 1], carrier_info, plane_info) > 0.09

    def test_starts_as_recovery_attempt(self, trap_scenario):
        samples = approach_samples(trap_scenario)
        assert is_recovery_attempt(samples.carrier[0], samples.plane[0])

    def test_arrested_plane_stops(self, trap_scenario):
        samples = approach_samples(trap_scenario)
        np.testing.assert_allclose(samples.plane[-1].position, samples.plane[-2].position)

    def test_bolter_keeps_going(self, bolter_scenario):
        samples = approach_samples(bolter_scenario)
        travelled = np.linalg.norm(samples.plane[-1].position - samples.plane[samples.touchdown].position)
        assert travelled > 200.0

    def test_unsupported_type(self):
        with pytest.raises(ValueError):
            approach_samples(ApproachScenario(plane_type="AV8BNA"))

    @pytest.mark.asyncio
    async def test_populate_emits_land_event(self, trap_scenario):
        source = SimulatedTelemetrySource()
        events = source.stream_events()
        samples = populate(source, trap_scenario, dcs_grading="WIRE# 3")
        for _ in range(samples.touchdown + 11):
            await source.get_transform("Hornet 1-1")

        land = await asyncio.wait_for(events.__anext__(), 1.0)
        mark = await asyncio.wait_for(events.__anext__(), 1.0)
        assert isinstance(land, LandEvent)
        assert land.plane.transform is samples.plane[samples.touchdown]
        assert land.carrier.name == "CVN-71 Theodore Roosevelt"
        assert isinstance(mark, LandingQualityMarkEvent)
        assert mark.comment == "WIRE# 3"
        await events.aclose()

    @pytest.mark.asyncio
    async def test_demo_source(self):
        source = demo_source()
        units = await source.list_units()
        assert {u.type for u in units} == {"CVN_71", "FA-18C_hornet"}
