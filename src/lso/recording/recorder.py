"""Record one recovery: poll both units, follow mission events, write the log."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import AsyncIterator

from lso import __version__
from lso.core.clock import Deadline
from lso.recording.acmi import AcmiWriter, GlobalProperty, Update
from lso.recording.merge import (
    CARRIER_ID,
    EVENT_LANDED,
    EVENT_MESSAGE,
    PLANE_ID,
    RecordingMerger,
    initial_update,
)
from lso.recording.storage import ResultStorage
from lso.report import recording_filename
from lso.tasks.interval import interval
from lso.tasks.params import TaskParams
from lso.telemetry.source import (
    LandEvent,
    LandingQualityMarkEvent,
    MissionEvent,
    TelemetrySource,
)
from lso.tracking.track import Track, TrackResult

logger = logging.getLogger(__name__)

RFC3339_FORMAT = "%Y-%m-%dT%H:%M:%SZ"


async def create_initial_update(source: TelemetrySource, obj_id: int, unit_name: str) -> Update:
    unit, attrs = await asyncio.gather(
        source.get_unit(unit_name), source.get_descriptor(unit_name)
    )
    return initial_update(obj_id, unit, attrs)


async def _pump(events: AsyncIterator[MissionEvent], queue: asyncio.Queue[MissionEvent]) -> None:
    async for event in events:
        await queue.put(event)


def _is_pair_event(event: MissionEvent, params: TaskParams) -> bool:
    return (
        isinstance(event, (LandEvent, LandingQualityMarkEvent))
        and event.plane.name == params.plane_name
        and event.carrier.name == params.carrier_name
    )


async def record_recovery(params: TaskParams) -> TrackResult | None:
    """Record a recovery attempt until it is over.

    The attempt is over once the tracker stops, or ``landed_grace_s`` after the
    land event.  Returns the graded result, or ``None`` when shutdown
    interrupted the recording (nothing is written then).
    """
    logger.debug("started recording")
    source = params.source
    cfg = params.recording

    filename = recording_filename(datetime.fromtimestamp(params.clock.now()), params.pilot_name)

    writer = AcmiWriter()
    track = Track(params.pilot_name, params.carrier_info, params.plane_info, params.tracking)
    merger = RecordingMerger()

    writer.write(GlobalProperty("ReferenceTime", await source.get_scenario_start_time()))
    writer.write(
        GlobalProperty("RecordingTime", datetime.now(timezone.utc).strftime(RFC3339_FORMAT))
    )
    mission_name = await source.get_mission_name()
    writer.write(GlobalProperty("Title", f"Carrier Recovery during {mission_name}"))
    writer.write(GlobalProperty("Author", f"{cfg.author} v{__version__}"))
    writer.write(await create_initial_update(source, CARRIER_ID, params.carrier_name))
    writer.write(await create_initial_update(source, PLANE_ID, params.plane_name))

    events = source.stream_events()
    queue: asyncio.Queue[MissionEvent] = asyncio.Queue()
    pump = asyncio.create_task(_pump(events, queue))
    grace = Deadline(params.clock, cfg.landed_grace_s)
    finished = False

    try:
        async for _ in interval(cfg.interval_s, params.shutdown):
            if pump.done() and not pump.cancelled() and pump.exception() is not None:
                raise pump.exception()

            while not queue.empty():
                event = queue.get_nowait()
                if not _is_pair_event(event, params):
                    continue
                carrier = event.carrier.transform
                plane = event.plane.transform

                if isinstance(event, LandingQualityMarkEvent):
                    logger.info("landing quality mark event: %s", event.comment)
                    track.set_dcs_grading(event.comment)
                    writer.write_all(
                        merger.event(event.time, carrier, plane, EVENT_MESSAGE, event.comment)
                    )
                else:
                    logger.info("land event")
                    writer.write_all(merger.event(event.time, carrier, plane, EVENT_LANDED))
                    finished = not track.next(carrier, plane)
                    if finished:
                        break
                    track.landed(carrier, plane)
                    # keep tracking a little longer to catch a bolter
                    grace.start()
            if finished:
                break

            carrier, plane = await asyncio.gather(
                source.get_transform(params.carrier_name),
                source.get_transform(params.plane_name),
            )
            writer.write_all(merger.tick(carrier, plane))

            if not track.next(carrier, plane) or grace.expired:
                finished = True
                break
    finally:
        pump.cancel()
        await asyncio.gather(pump, return_exceptions=True)
        aclose = getattr(events, "aclose", None)
        if aclose is not None:
            await aclose()

    if not finished:
        logger.info("recording abandoned")
        return None

    out_dir = Path(cfg.out_dir)
    acmi_path = await asyncio.to_thread(
        writer.save, out_dir / f"{filename}{cfg.acmi_suffix}", cfg.compressed
    )
    result = track.finish()
    result_path = await asyncio.to_thread(
        ResultStorage.save,
        result,
        out_dir / f"{filename}.lso",
        cfg.results_format,
        cfg.results_compression,
    )
    files = [acmi_path, result_path]

    if params.renderer is not None:
        files.append(await asyncio.to_thread(params.renderer.render, result, out_dir / f"{filename}.png"))

    logger.info(
        "recovery of %s graded %s (DCS LSO: %s)",
        result.pilot_name,
        result.grading.summary(),
        result.dcs_grading or "-",
    )
    if params.sink is not None:
        await params.sink.notify(
            result.pilot_name, result.grading.summary(), result.dcs_grading, files
        )
    return result
