"""Telemetry sources feeding the tracker."""

from lso.telemetry.simulated import SimulatedTelemetrySource
from lso.telemetry.source import (
    BirthEvent,
    LandEvent,
    LandingQualityMarkEvent,
    MissionEvent,
    TelemetrySource,
    UnitInfo,
    UnitSnapshot,
)

__all__ = [
    "BirthEvent",
    "LandEvent",
    "LandingQualityMarkEvent",
    "MissionEvent",
    "SimulatedTelemetrySource",
    "TelemetrySource",
    "UnitInfo",
    "UnitSnapshot",
]
