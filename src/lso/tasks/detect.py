"""Per carrier/plane pair task: watch for recovery attempts and record them."""

from __future__ import annotations

import asyncio
import logging

from lso.core.errors import EntityNotFoundError
from lso.recording.recorder import record_recovery
from lso.tasks.interval import interval
from lso.tasks.params import TaskParams
from lso.tracking.attempt import is_recovery_attempt
from lso.tracking.track import TrackResult
from lso.utils.logging import pair_context

logger = logging.getLogger(__name__)


async def detect_recovery_attempt(params: TaskParams) -> list[TrackResult]:
    """Poll the pair until one of the units is gone or shutdown.

    Every recovery attempt found is recorded before watching resumes.
    Returns the results recorded along the way.
    """
    results: list[TrackResult] = []
    with pair_context(params.carrier_name, params.plane_name):
        logger.debug("started observing for possible recovery attempts")
        try:
            async for _ in interval(params.detection.poll_interval_s, params.shutdown):
                carrier, plane = await asyncio.gather(
                    params.source.get_transform(params.carrier_name),
                    params.source.get_transform(params.plane_name),
                )
                if is_recovery_attempt(carrier, plane, params.detection):
                    logger.info("found recovery attempt at t=%.2f", plane.time)
                    result = await record_recovery(params)
                    if result is not None:
                        results.append(result)
        except EntityNotFoundError as e:
            logger.debug("stop tracking as %s", e)
    return results
