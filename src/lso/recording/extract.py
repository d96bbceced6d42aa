"""Re-derive gradings from ACMI recordings written by the recorder.

Every supported carrier/plane combination found in the log becomes a
:class:`CarrierPlanePair` that replays the live behaviour frame by frame:
gating first, then tracking, land and grade events applied by object id.
Recordings exported by Tacview itself lack the ``AOA`` property and the
event records, so they will not grade.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import BinaryIO, Iterable, Iterator

from lso.core.errors import AcmiParseError
from lso.core.types import Tag
from lso.recording.acmi import Event, Frame, GlobalProperty, Record, Update, iter_records
from lso.recording.merge import EVENT_LANDED, EVENT_MESSAGE
from lso.tracking.attempt import AttemptParams, is_recovery_attempt
from lso.tracking.rig import AirplaneInfo, CarrierInfo
from lso.tracking.track import Track, TrackParams, TrackResult
from lso.tracking.transform import Transform

logger = logging.getLogger(__name__)

KI_PILOT = "KI"

# Landed grace period in recording time, mirroring the live recorder.
DEFAULT_LANDED_GRACE_S = 10.0


class CarrierPlanePair:
    """Replay state of one carrier and one plane."""

    def __init__(
        self,
        recording_time: datetime,
        carrier_id: int,
        carrier_info: CarrierInfo,
        plane_id: int,
        pilot_name: str,
        plane_info: AirplaneInfo,
        detection: AttemptParams | None = None,
        tracking: TrackParams | None = None,
        landed_grace_s: float = DEFAULT_LANDED_GRACE_S,
    ):
        self.recording_time = recording_time
        self.carrier_id = carrier_id
        self.carrier_info = carrier_info
        self.plane_id = plane_id
        self.pilot_name = pilot_name
        self.plane_info = plane_info
        self.detection = detection or AttemptParams()
        self.tracking = tracking or TrackParams()
        self.landed_grace_s = landed_grace_s

        # lat/lon in the recording are relative to these
        self._lat_ref = 0.0
        self._lon_ref = 0.0
        self.carrier = Transform.empty()
        self.plane = Transform.empty()
        self._carrier_seen = False
        self._plane_seen = False
        self.is_dirty = False
        self.is_recovery_attempt = False
        self.landed_at: float | None = None
        self._landed_applied = False
        self.track = self._new_track()
        self.results: list[TrackResult] = []

    def _new_track(self) -> Track:
        return Track(self.pilot_name, self.carrier_info, self.plane_info, self.tracking)

    def update(self, time: float, update: Update) -> None:
        if update.id == self.carrier_id:
            is_plane = False
        elif update.id == self.plane_id:
            is_plane = True
        else:
            return

        transform = self.plane if is_plane else self.carrier
        coords = update.coords
        if coords is not None:
            transform = transform.with_update(
                time,
                lat=None if coords.latitude is None else coords.latitude + self._lat_ref,
                lon=None if coords.longitude is None else coords.longitude + self._lon_ref,
                alt=coords.altitude,
                u=coords.u,
                v=coords.v,
                roll=coords.roll,
                pitch=coords.pitch,
                yaw=coords.yaw,
                heading=coords.heading,
            )
            if is_plane:
                self._plane_seen = True
                self.is_dirty = True
            else:
                self._carrier_seen = True

        if is_plane:
            if update.pilot:
                self.pilot_name = update.pilot
                self.track.pilot_name = update.pilot
            aoa = update.aoa
            if aoa is not None:
                transform = transform.with_aoa(aoa)
            self.plane = transform
        else:
            self.carrier = transform

    def set_reference(self, lat_ref: float, lon_ref: float) -> None:
        self._lat_ref = lat_ref
        self._lon_ref = lon_ref

    def matches(self, carrier_id: int, plane_id: int) -> bool:
        return self.carrier_id == carrier_id and self.plane_id == plane_id

    def landed(self, time: float, carrier_id: int, plane_id: int) -> None:
        if self.matches(carrier_id, plane_id) and self.landed_at is None:
            self.landed_at = time
            self.is_dirty = True

    def dcs_grading(self, carrier_id: int, plane_id: int, text: str) -> None:
        if self.matches(carrier_id, plane_id):
            self.track.set_dcs_grading(text)

    def process_frame(self, time: float) -> None:
        """Advance the pair after all records of a frame were applied.

        The landed grace period is checked on every frame, also when the
        plane sits still on deck and the recording elides its updates.
        """
        dirty = self.is_dirty
        self.is_dirty = False

        if not (self._carrier_seen and self._plane_seen):
            return

        if not self.is_recovery_attempt:
            if dirty and is_recovery_attempt(self.carrier, self.plane, self.detection):
                logger.debug("found recovery attempt of %s at t=%.2f", self.pilot_name, time)
                self.is_recovery_attempt = True
            return

        should_continue = self.track.next(self.carrier, self.plane) if dirty else True
        if self.landed_at is not None:
            if not self._landed_applied:
                self.track.landed(self.carrier, self.plane)
                self._landed_applied = True
            if time - self.landed_at > self.landed_grace_s:
                should_continue = False

        if not should_continue:
            self.finish()

    def finish(self) -> TrackResult | None:
        """Finalize an ongoing attempt and start watching for the next one."""
        if not self.is_recovery_attempt:
            return None
        result = self.track.finish()
        self.results.append(result)
        self.track = self._new_track()
        self.is_recovery_attempt = False
        self.landed_at = None
        self._landed_applied = False
        return result


def _parse_recording_time(value: str) -> datetime | None:
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        logger.debug("ignoring unparsable recording time %r", value)
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone()


def _reference_value(record: GlobalProperty) -> float:
    try:
        return float(record.value)
    except ValueError:
        raise AcmiParseError(f"invalid {record.key} `{record.value}`") from None


def _event_ids(event: Event) -> tuple[int, int] | None:
    """(carrier id, plane id) of a recorder event; params start ``[plane, carrier]``."""
    if len(event.params) < 2:
        return None
    try:
        return int(event.params[1], 16), int(event.params[0], 16)
    except ValueError:
        logger.debug("ignoring event with invalid ids %r", event.params)
        return None


def extract_tracks(
    source: str | Path | bytes | BinaryIO | Iterable[Record],
    detection: AttemptParams | None = None,
    tracking: TrackParams | None = None,
    landed_grace_s: float = DEFAULT_LANDED_GRACE_S,
) -> list[CarrierPlanePair]:
    """Replay a recording; returns every carrier/plane pair found in it.

    *source* is anything :func:`~lso.recording.acmi.iter_records` accepts, or
    already parsed records.

    Raises:
        AcmiParseError: The recording is malformed.
    """
    records: Iterator[Record] | Iterable[Record]
    if isinstance(source, (str, Path, bytes)) or hasattr(source, "read"):
        records = iter_records(source)  # type: ignore[arg-type]
    else:
        records = source

    recording_time = datetime.now().astimezone()
    lat_ref = 0.0
    lon_ref = 0.0
    carriers: dict[int, CarrierInfo] = {}
    planes: dict[int, tuple[str, AirplaneInfo]] = {}
    ignored: set[int] = set()
    pairs: list[CarrierPlanePair] = []
    time = 0.0

    def new_pair(carrier_id, carrier_info, plane_id, pilot_name, plane_info) -> None:
        pair = CarrierPlanePair(
            recording_time,
            carrier_id,
            carrier_info,
            plane_id,
            pilot_name,
            plane_info,
            detection=detection,
            tracking=tracking,
            landed_grace_s=landed_grace_s,
        )
        pair.set_reference(lat_ref, lon_ref)
        pairs.append(pair)

    for record in records:
        if isinstance(record, GlobalProperty):
            if record.key == "RecordingTime":
                recording_time = _parse_recording_time(record.value) or recording_time
            elif record.key == "ReferenceLatitude":
                lat_ref = _reference_value(record)
                for pair in pairs:
                    pair.set_reference(lat_ref, lon_ref)
            elif record.key == "ReferenceLongitude":
                lon_ref = _reference_value(record)
                for pair in pairs:
                    pair.set_reference(lat_ref, lon_ref)

        elif isinstance(record, Frame):
            for pair in pairs:
                pair.process_frame(time)
            time = record.time

        elif isinstance(record, Update):
            if (
                record.id not in carriers
                and record.id not in planes
                and record.id not in ignored
            ):
                name = record.name
                tags = record.tags
                if name is not None and tags is not None:
                    if Tag.AIRCRAFT_CARRIER.value in tags:
                        carrier_info = CarrierInfo.by_type(name)
                        if carrier_info is None:
                            logger.debug("unsupported aircraft carrier %s", name)
                            ignored.add(record.id)
                        else:
                            for plane_id, (pilot_name, plane_info) in planes.items():
                                new_pair(record.id, carrier_info, plane_id, pilot_name, plane_info)
                            carriers[record.id] = carrier_info
                    elif Tag.FIXED_WING.value in tags:
                        plane_info = AirplaneInfo.by_type(name)
                        if plane_info is None:
                            logger.debug("unsupported fixed wing aircraft %s", name)
                            ignored.add(record.id)
                        else:
                            pilot_name = record.pilot or KI_PILOT
                            for carrier_id, carrier_info in carriers.items():
                                new_pair(carrier_id, carrier_info, record.id, pilot_name, plane_info)
                            planes[record.id] = (pilot_name, plane_info)
                    else:
                        ignored.add(record.id)

            for pair in pairs:
                pair.update(time, record)

        elif isinstance(record, Event):
            if record.kind == EVENT_LANDED:
                ids = _event_ids(record)
                if ids is not None:
                    logger.debug("landed event carrier=%d plane=%d", *ids)
                    for pair in pairs:
                        pair.landed(time, *ids)
            elif record.kind == EVENT_MESSAGE and record.text:
                ids = _event_ids(record)
                if ids is not None:
                    logger.debug("dcs lso grading %r", record.text)
                    for pair in pairs:
                        pair.dcs_grading(*ids, record.text)

    for pair in pairs:
        pair.process_frame(time)

    return pairs


def extract_recoveries(
    source: str | Path | bytes | BinaryIO | Iterable[Record],
    detection: AttemptParams | None = None,
    tracking: TrackParams | None = None,
    landed_grace_s: float = DEFAULT_LANDED_GRACE_S,
) -> list[TrackResult]:
    """Graded recovery attempts of a recording, in pair order."""
    results: list[TrackResult] = []
    for pair in extract_tracks(source, detection, tracking, landed_grace_s):
        pair.finish()
        results.extend(pair.results)
    return results
