"""Everything a carrier/plane pair task needs."""

from __future__ import annotations

from dataclasses import dataclass, field

from lso.core.clock import Clock, SystemClock
from lso.notify import NotificationSink
from lso.recording.config import RecordingConfig
from lso.report import ChartRenderer
from lso.tasks.shutdown import Shutdown
from lso.telemetry.source import TelemetrySource
from lso.tracking.attempt import AttemptParams
from lso.tracking.rig import AirplaneInfo, CarrierInfo
from lso.tracking.track import TrackParams


@dataclass(frozen=True)
class TaskParams:
    source: TelemetrySource
    shutdown: Shutdown
    carrier_name: str
    plane_name: str
    pilot_name: str
    carrier_info: CarrierInfo
    plane_info: AirplaneInfo
    detection: AttemptParams = field(default_factory=AttemptParams)
    tracking: TrackParams = field(default_factory=TrackParams)
    recording: RecordingConfig = field(default_factory=RecordingConfig)
    clock: Clock = field(default_factory=SystemClock)
    sink: NotificationSink | None = None
    renderer: ChartRenderer | None = None
