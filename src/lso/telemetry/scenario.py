"""Scripted straight-in approaches for the simulated telemetry source.

The plane flies the optimal glide slope down the angled deck's centerline,
touches down with the hook on the deck and is either arrested or bolters.
Samples are spaced ``step_m`` apart along the centerline, one per poll.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field

import numpy as np

from lso.core.types import Coalition, GroupCategory
from lso.telemetry.simulated import SimulatedTelemetrySource
from lso.telemetry.source import (
    CARRIER_ATTRIBUTE,
    LandEvent,
    LandingQualityMarkEvent,
    UnitInfo,
    UnitSnapshot,
)
from lso.tracking.rig import AirplaneInfo, CarrierInfo
from lso.tracking.track import landing_position
from lso.tracking.transform import RawOrientation, RawPosition, RawVector, Transform
from lso.utils.vector import UNIT_Y, UNIT_Z, Rotation3, deck_axis, vec3

METERS_PER_DEGREE_LAT = 111_320.0

CARRIER_DESCRIPTOR = ("Ships", "AircraftCarrier", CARRIER_ATTRIBUTE)
PLANE_DESCRIPTOR = ("Air", "Planes")


@dataclass(frozen=True)
class ApproachScenario:
    carrier_type: str = "CVN_71"
    plane_type: str = "FA-18C_hornet"
    carrier_heading: float = 0.0
    # Along-track distance of the first sample from the aim point.
    start_distance_m: float = 1400.0
    step_m: float = 7.0
    dt: float = 0.1
    start_time: float = 100.0
    aoa: float = 8.1
    bolter: bool = False
    # Arrested landings come to a stop this far past the touchdown point.
    rollout_m: float = 60.0
    # Samples after touchdown.
    tail_samples: int = 60
    latitude: float = 41.2
    longitude: float = -70.5

    @property
    def carrier_info(self) -> CarrierInfo:
        info = CarrierInfo.by_type(self.carrier_type)
        if info is None:
            raise ValueError(f"unsupported carrier type {self.carrier_type!r}")
        return info

    @property
    def plane_info(self) -> AirplaneInfo:
        info = AirplaneInfo.by_type(self.plane_type)
        if info is None:
            raise ValueError(f"unsupported airplane type {self.plane_type!r}")
        return info


@dataclass
class ApproachSamples:
    carrier: list[Transform] = field(default_factory=list)
    plane: list[Transform] = field(default_factory=list)
    # Index of the first sample with the hook on the deck.
    touchdown: int = -1


def _to_raw(v: np.ndarray) -> RawVector:
    # inverse of RawVector.fixed()
    return RawVector(x=float(v[2]), y=float(v[1]), z=float(v[0]))


def _sample(
    scenario: ApproachScenario,
    time: float,
    position: np.ndarray,
    velocity: np.ndarray,
    heading: float,
    pitch: float,
) -> Transform:
    lat = scenario.latitude + float(position[2]) / METERS_PER_DEGREE_LAT
    lon = scenario.longitude + float(position[0]) / (
        METERS_PER_DEGREE_LAT * math.cos(math.radians(scenario.latitude))
    )
    return Transform.from_telemetry(
        time,
        position=RawPosition(
            lat=lat, lon=lon, alt=float(position[1]), u=float(position[0]), v=float(position[2])
        ),
        orientation=RawOrientation(heading=heading, yaw=heading, pitch=pitch),
        velocity=_to_raw(velocity),
    )


def approach_samples(scenario: ApproachScenario) -> ApproachSamples:
    """Carrier and plane samples of one approach, aligned by index."""
    carrier_info = scenario.carrier_info
    plane_info = scenario.plane_info
    heading = scenario.carrier_heading % 360.0

    carrier = Transform.from_telemetry(
        scenario.start_time,
        position=RawPosition(lat=scenario.latitude, lon=scenario.longitude),
        orientation=RawOrientation(heading=heading, yaw=heading),
    )
    aim = landing_position(carrier, carrier_info, plane_info)
    landing_dir = deck_axis(heading, carrier_info.deck_angle).rotate(UNIT_Z)

    plane_heading = (heading - carrier_info.deck_angle) % 360.0
    glide = math.radians(plane_info.glide_slope)
    pitch = scenario.aoa - plane_info.glide_slope
    speed = scenario.step_m / scenario.dt

    # Plane origin height with the hook resting on the deck.
    hook = Rotation3.from_attitude_deg(0.0, pitch, plane_heading).rotate(plane_info.hook)
    deck_y = float(carrier.position[1]) + carrier_info.deck_altitude - float(hook[1])

    samples = ApproachSamples()
    approach_velocity = (landing_dir * math.cos(glide) - UNIT_Y * math.sin(glide)) * speed
    i = 0
    while True:
        d = scenario.start_distance_m - i * scenario.step_m
        y = float(aim[1]) + d * math.tan(glide)
        position = aim - landing_dir * d
        on_deck = y <= deck_y
        position[1] = max(y, deck_y)
        velocity = landing_dir * speed if on_deck else approach_velocity
        samples.plane.append(
            _sample(scenario, scenario.start_time + i * scenario.dt, position, velocity, plane_heading, pitch)
        )
        if on_deck:
            samples.touchdown = i
            break
        i += 1

    touchdown = position.copy()
    decel = speed**2 / (2.0 * scenario.rollout_m)
    for j in range(1, scenario.tail_samples + 1):
        t = j * scenario.dt
        if scenario.bolter:
            travelled = speed * t
            velocity = landing_dir * speed
        else:
            t = min(t, speed / decel)
            travelled = speed * t - 0.5 * decel * t**2
            velocity = landing_dir * (speed - decel * t)
        samples.plane.append(
            _sample(
                scenario,
                scenario.start_time + (i + j) * scenario.dt,
                touchdown + landing_dir * travelled,
                velocity,
                plane_heading,
                pitch,
            )
        )

    samples.carrier = [
        Transform.from_telemetry(
            plane.time,
            position=RawPosition(lat=scenario.latitude, lon=scenario.longitude),
            orientation=RawOrientation(heading=heading, yaw=heading),
            velocity=_to_raw(vec3(0.0, 0.0, 0.0)),
        )
        for plane in samples.plane
    ]
    return samples


def populate(
    source: SimulatedTelemetrySource,
    scenario: ApproachScenario,
    carrier_name: str = "CVN-71 Theodore Roosevelt",
    plane_name: str = "Hornet 1-1",
    pilot_name: str | None = "Maverick",
    dcs_grading: str | None = None,
    announce: bool = False,
) -> ApproachSamples:
    """Script *scenario* into *source*.

    The land event fires once the plane was polled up to the touchdown
    sample; the optional DCS LSO comment follows ten polls later.
    """
    samples = approach_samples(scenario)
    source.add_unit(
        UnitInfo(
            name=carrier_name,
            type=scenario.carrier_type,
            group_name="CVN-71",
            group_category=GroupCategory.SHIP,
            coalition=Coalition.BLUE,
        ),
        descriptor=CARRIER_DESCRIPTOR,
        transforms=samples.carrier,
        announce=announce,
    )
    source.add_unit(
        UnitInfo(
            name=plane_name,
            type=scenario.plane_type,
            group_name="Hornet 1",
            group_category=GroupCategory.AIRPLANE,
            coalition=Coalition.BLUE,
            player_name=pilot_name,
        ),
        descriptor=PLANE_DESCRIPTOR,
        transforms=samples.plane,
        announce=announce,
    )

    k = samples.touchdown
    source.emit_after(
        plane_name,
        k + 1,
        LandEvent(
            time=samples.plane[k].time,
            plane=UnitSnapshot(plane_name, samples.plane[k]),
            carrier=UnitSnapshot(carrier_name, samples.carrier[k]),
        ),
    )
    if dcs_grading is not None:
        m = min(k + 10, len(samples.plane) - 1)
        source.emit_after(
            plane_name,
            m + 1,
            LandingQualityMarkEvent(
                time=samples.plane[m].time,
                plane=UnitSnapshot(plane_name, samples.plane[m]),
                carrier=UnitSnapshot(carrier_name, samples.carrier[m]),
                comment=dcs_grading,
            ),
        )
    return samples


def demo_source(config=None) -> SimulatedTelemetrySource:
    """Telemetry source factory for ``lso run`` without a running mission.

    Usable as ``lso.telemetry.scenario:demo_source``; *config* is ignored.
    """
    source = SimulatedTelemetrySource()
    populate(source, ApproachScenario(), dcs_grading="LSO: GRADE:OK  : WIRE# 3")
    return source
