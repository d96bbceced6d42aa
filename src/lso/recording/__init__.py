"""ACMI recording: writing, merging, storing and replaying recoveries."""

from lso.recording.acmi import AcmiWriter, Coords, Event, Frame, GlobalProperty, Remove, Update, iter_records
from lso.recording.config import RecordingConfig
from lso.recording.extract import CarrierPlanePair, extract_recoveries, extract_tracks
from lso.recording.merge import CoordsTracker, FrameClock, RecordingMerger
from lso.recording.storage import ResultStorage

__all__ = [
    "AcmiWriter",
    "CarrierPlanePair",
    "Coords",
    "CoordsTracker",
    "Event",
    "Frame",
    "FrameClock",
    "GlobalProperty",
    "RecordingConfig",
    "RecordingMerger",
    "Remove",
    "ResultStorage",
    "Update",
    "extract_recoveries",
    "extract_tracks",
    "iter_records",
]
