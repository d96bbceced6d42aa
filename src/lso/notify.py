"""Notification of graded recoveries."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Protocol, Sequence, runtime_checkable

logger = logging.getLogger(__name__)


@runtime_checkable
class NotificationSink(Protocol):
    async def notify(
        self,
        pilot_name: str,
        grading: str,
        dcs_grading: str | None,
        files: Sequence[Path],
    ) -> None:
        """Publish a graded recovery.  *grading* is ``Grading.summary()``."""
        ...


class LogNotificationSink:
    """Writes the grading summary to the log.  Used when nothing else is configured."""

    async def notify(
        self,
        pilot_name: str,
        grading: str,
        dcs_grading: str | None,
        files: Sequence[Path],
    ) -> None:
        logger.info(
            "Recovery of %s graded %s (DCS LSO: %s), files: %s",
            pilot_name,
            grading,
            dcs_grading or "-",
            ", ".join(str(f) for f in files),
        )
