"""Shared pytest fixtures for LSO tests."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest
from omegaconf import OmegaConf

from lso.core.types import Coalition
from lso.recording.acmi import AcmiWriter, GlobalProperty
from lso.recording.merge import (
    CARRIER_ID,
    EVENT_LANDED,
    EVENT_MESSAGE,
    PLANE_ID,
    RecordingMerger,
    initial_update,
)
from lso.telemetry.scenario import (
    CARRIER_DESCRIPTOR,
    PLANE_DESCRIPTOR,
    ApproachScenario,
    approach_samples,
)
from lso.telemetry.source import UnitInfo
from lso.tracking.rig import FA18C, NIMITZ
from lso.tracking.transform import RawOrientation, RawPosition, RawVector, Transform


@pytest.fixture(autouse=True)
def _restore_logging():
    """setup_logging() points the package logger at whatever stdout was captured."""
    yield
    logger = logging.getLogger("lso")
    for handler in logger.handlers:
        handler.close()
    logger.handlers.clear()
    logger.propagate = True


@pytest.fixture
def project_root() -> Path:
    return Path(__file__).parent.parent


@pytest.fixture
def config_path(project_root: Path) -> Path:
    return project_root / "config" / "default.yaml"


@pytest.fixture
def default_config(config_path: Path):
    return OmegaConf.load(config_path)


@pytest.fixture
def carrier_info():
    return NIMITZ


@pytest.fixture
def plane_info():
    return FA18C


@pytest.fixture
def make_transform():
    """Build a Transform from working-frame values (+x east, +y up, +z north)."""

    def _make(
        time: float = 1.0,
        position=(0.0, 0.0, 0.0),
        velocity=(0.0, 0.0, 0.0),
        heading: float = 0.0,
        pitch: float = 0.0,
        roll: float = 0.0,
        lat: float = 0.0,
        lon: float = 0.0,
    ) -> Transform:
        x, y, z = position
        vx, vy, vz = velocity
        return Transform.from_telemetry(
            time,
            position=RawPosition(lat=lat, lon=lon, alt=y, u=x, v=z),
            orientation=RawOrientation(heading=heading, yaw=heading, pitch=pitch, roll=roll),
            velocity=RawVector(x=vz, y=vy, z=vx),
        )

    return _make


@pytest.fixture
def trap_scenario() -> ApproachScenario:
    """Short straight-in approach ending in an arrested landing."""
    return ApproachScenario(start_distance_m=700.0, tail_samples=30)


@pytest.fixture
def bolter_scenario() -> ApproachScenario:
    return ApproachScenario(start_distance_m=700.0, bolter=True, tail_samples=40)


@pytest.fixture
def make_recording():
    """Write an approach scenario the way the recorder does; returns the ACMI text."""

    def _make(
        scenario: ApproachScenario,
        dcs_grading: str | None = None,
        land_event: bool = True,
        pilot_name: str | None = "Maverick",
    ) -> str:
        samples = approach_samples(scenario)
        writer = AcmiWriter()
        writer.write(GlobalProperty("ReferenceTime", "2021-11-11T14:00:00Z"))
        writer.write(GlobalProperty("RecordingTime", "2021-11-11T14:37:27Z"))
        writer.write(
            initial_update(
                CARRIER_ID,
                UnitInfo("CVN-71", scenario.carrier_type, coalition=Coalition.BLUE),
                CARRIER_DESCRIPTOR,
            )
        )
        writer.write(
            initial_update(
                PLANE_ID,
                UnitInfo(
                    "Hornet 1-1",
                    scenario.plane_type,
                    coalition=Coalition.BLUE,
                    player_name=pilot_name,
                ),
                PLANE_DESCRIPTOR,
            )
        )

        merger = RecordingMerger()
        k = samples.touchdown
        for i, (carrier, plane) in enumerate(zip(samples.carrier, samples.plane)):
            writer.write_all(merger.tick(carrier, plane))
            if land_event and i == k:
                writer.write_all(merger.event(plane.time, carrier, plane, EVENT_LANDED))
            if dcs_grading is not None and i == k + 10:
                writer.write_all(merger.event(plane.time, carrier, plane, EVENT_MESSAGE, dcs_grading))
        return writer.getvalue()

    return _make
