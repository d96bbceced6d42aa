"""Live service: find carrier/plane pairs and run one task per pair.

:func:`run_with_retry` drives :meth:`RecoveryService.run_once` and reconnects
with exponential backoff whenever the telemetry source fails.
"""

from __future__ import annotations

import asyncio
import importlib
import logging
from typing import Any, AsyncIterator, Awaitable, Callable, Union

from lso.core.clock import Clock, SystemClock
from lso.core.errors import EntityNotFoundError, TelemetryError
from lso.core.types import GroupCategory
from lso.notify import NotificationSink
from lso.recording.config import RecordingConfig
from lso.report import ChartRenderer
from lso.tasks.config import RetryConfig, TelemetryConfig
from lso.tasks.detect import detect_recovery_attempt
from lso.tasks.params import TaskParams
from lso.tasks.shutdown import Shutdown
from lso.telemetry.source import (
    CARRIER_ATTRIBUTE,
    BirthEvent,
    MissionEvent,
    TelemetrySource,
    UnitInfo,
)
from lso.tracking.attempt import AttemptParams
from lso.tracking.rig import AirplaneInfo, CarrierInfo
from lso.tracking.track import TrackParams

logger = logging.getLogger(__name__)

# Pilot name used for AI controlled planes.
KI_PILOT = "KI"

Candidate = Union[CarrierInfo, AirplaneInfo]
SourceFactory = Callable[[], TelemetrySource]


def load_source_factory(target: str) -> Callable[[TelemetryConfig], TelemetrySource]:
    """Resolve ``"package.module:factory"`` to the factory callable."""
    module_name, sep, attr = target.partition(":")
    if not sep or not module_name or not attr:
        raise ValueError(f"telemetry source must look like 'module:factory', got {target!r}")
    module = importlib.import_module(module_name)
    try:
        return getattr(module, attr)
    except AttributeError:
        raise ValueError(f"module {module_name!r} has no attribute {attr!r}") from None


async def check_candidate(
    source: TelemetrySource, unit: UnitInfo, include_ki: bool = False
) -> Candidate | None:
    """Rig info if *unit* should be tracked, else ``None``.

    Planes qualify when player controlled (or ``include_ki``) and of a
    supported type; ships when their descriptor marks them as carriers with
    arresting gear and their type is supported.
    """
    if unit.group_category is GroupCategory.AIRPLANE:
        if unit.player_name is None and not include_ki:
            return None
        plane_info = AirplaneInfo.by_type(unit.type)
        if plane_info is None:
            logger.debug("unsupported airplane type %s (%s)", unit.type, unit.name)
        return plane_info

    if unit.group_category is GroupCategory.SHIP:
        attrs = await source.get_descriptor(unit.name)
        if CARRIER_ATTRIBUTE not in attrs:
            return None
        carrier_info = CarrierInfo.by_type(unit.type)
        if carrier_info is None:
            logger.debug("unsupported carrier type %s (%s)", unit.type, unit.name)
        return carrier_info

    return None


class RecoveryService:
    """Spawns and supervises the pair tasks for one telemetry connection."""

    def __init__(
        self,
        source_factory: SourceFactory,
        shutdown: Shutdown,
        *,
        include_ki: bool = False,
        detection: AttemptParams | None = None,
        tracking: TrackParams | None = None,
        recording: RecordingConfig | None = None,
        clock: Clock | None = None,
        sink: NotificationSink | None = None,
        renderer: ChartRenderer | None = None,
    ):
        self._source_factory = source_factory
        self.shutdown = shutdown
        self.include_ki = include_ki
        self.detection = detection or AttemptParams()
        self.tracking = tracking or TrackParams()
        self.recording = recording or RecordingConfig()
        self.clock = clock or SystemClock()
        self.sink = sink
        self.renderer = renderer

        self._tasks: dict[tuple[str, str], asyncio.Task] = {}
        self._errors: asyncio.Queue[BaseException] = asyncio.Queue()

    @classmethod
    def from_config(
        cls,
        cfg: Any,
        source_factory: SourceFactory,
        shutdown: Shutdown,
        **kwargs: Any,
    ) -> RecoveryService:
        """Build from the loaded ``lso`` config root."""
        root = cfg.lso
        return cls(
            source_factory,
            shutdown,
            include_ki=TelemetryConfig.from_omegaconf(root.get("telemetry")).include_ki,
            detection=AttemptParams.from_omegaconf(root.get("detection")),
            tracking=TrackParams.from_omegaconf(root.get("tracking")),
            recording=RecordingConfig.from_omegaconf(root.get("recording"), root.get("results")),
            **kwargs,
        )

    @property
    def pairs(self) -> list[tuple[str, str]]:
        """(carrier, plane) names of the pair tasks still running."""
        return [key for key, task in self._tasks.items() if not task.done()]

    def _spawn(
        self,
        source: TelemetrySource,
        carrier_name: str,
        carrier_info: CarrierInfo,
        plane_name: str,
        plane_info: AirplaneInfo,
        pilot_name: str,
    ) -> None:
        key = (carrier_name, plane_name)
        existing = self._tasks.get(key)
        if existing is not None and not existing.done():
            return

        params = TaskParams(
            source=source,
            shutdown=self.shutdown,
            carrier_name=carrier_name,
            plane_name=plane_name,
            pilot_name=pilot_name,
            carrier_info=carrier_info,
            plane_info=plane_info,
            detection=self.detection,
            tracking=self.tracking,
            recording=self.recording,
            clock=self.clock,
            sink=self.sink,
            renderer=self.renderer,
        )
        logger.debug("spawning recovery task for %s / %s (%s)", carrier_name, plane_name, pilot_name)
        self._tasks[key] = asyncio.create_task(self._run_pair(params))

    async def _run_pair(self, params: TaskParams) -> None:
        try:
            await detect_recovery_attempt(params)
        except TelemetryError as e:
            # connection level problem, reconnect everything
            await self._errors.put(e)
        except Exception:
            logger.exception(
                "recovery task for %s / %s failed", params.carrier_name, params.plane_name
            )

    async def _listen(
        self,
        source: TelemetrySource,
        events: AsyncIterator[MissionEvent],
        carriers: dict[str, CarrierInfo],
        planes: dict[str, tuple[str, AirplaneInfo]],
    ) -> None:
        """Spawn pair tasks for units born after the initial sync."""
        try:
            async for event in events:
                if not isinstance(event, BirthEvent):
                    continue
                unit = event.unit
                try:
                    candidate = await check_candidate(source, unit, self.include_ki)
                except EntityNotFoundError as e:
                    logger.debug("ignoring birth of vanished unit: %s", e)
                    continue
                if isinstance(candidate, AirplaneInfo):
                    pilot_name = unit.player_name or KI_PILOT
                    planes[unit.name] = (pilot_name, candidate)
                    for carrier_name, carrier_info in carriers.items():
                        self._spawn(source, carrier_name, carrier_info, unit.name, candidate, pilot_name)
                elif isinstance(candidate, CarrierInfo):
                    carriers[unit.name] = candidate
                    for plane_name, (pilot_name, plane_info) in planes.items():
                        self._spawn(source, unit.name, candidate, plane_name, plane_info, pilot_name)
        except Exception as e:
            await self._errors.put(e)

    async def run_once(self) -> None:
        """Connect, sync units and supervise pair tasks until shutdown.

        Raises the first connection-level error of any task.
        """
        source = self._source_factory()
        self._errors = asyncio.Queue()
        logger.info("Connected")

        # subscribe before the sync so births in between are not missed
        events = source.stream_events()

        carriers: dict[str, CarrierInfo] = {}
        planes: dict[str, tuple[str, AirplaneInfo]] = {}
        for unit in await source.list_units():
            candidate = await check_candidate(source, unit, self.include_ki)
            if isinstance(candidate, AirplaneInfo):
                planes[unit.name] = (unit.player_name or KI_PILOT, candidate)
            elif isinstance(candidate, CarrierInfo):
                carriers[unit.name] = candidate
        logger.info("Found %d carrier(s) and %d plane(s)", len(carriers), len(planes))

        for carrier_name, carrier_info in carriers.items():
            for plane_name, (pilot_name, plane_info) in planes.items():
                self._spawn(source, carrier_name, carrier_info, plane_name, plane_info, pilot_name)

        listener = asyncio.create_task(self._listen(source, events, carriers, planes))
        shutdown_wait = asyncio.create_task(self.shutdown.signal())
        error_wait = asyncio.create_task(self._errors.get())
        failed = False
        try:
            done, _ = await asyncio.wait(
                {shutdown_wait, error_wait}, return_when=asyncio.FIRST_COMPLETED
            )
            if error_wait in done:
                failed = True
                raise error_wait.result()
        finally:
            for task in (listener, shutdown_wait, error_wait):
                task.cancel()
            tasks = list(self._tasks.values())
            if failed:
                for task in tasks:
                    task.cancel()
            await asyncio.gather(listener, shutdown_wait, error_wait, *tasks, return_exceptions=True)
            self._tasks.clear()
            aclose = getattr(events, "aclose", None)
            if aclose is not None:
                await aclose()


async def run_with_retry(
    attempt: Callable[[], Awaitable[None]],
    retry: RetryConfig,
    shutdown: Shutdown,
) -> None:
    """Run *attempt* until shutdown, retrying every error with backoff."""
    delays = retry.delays()
    while not shutdown.triggered:
        try:
            await attempt()
        except Exception as e:
            delay = next(delays)
            logger.debug("retrying after error: %s (backoff %.2fs)", e, delay)
            if await shutdown.wait(delay):
                return
        else:
            return
