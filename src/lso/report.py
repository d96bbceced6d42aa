"""Report naming and the chart renderer interface."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Protocol, runtime_checkable

from lso.tracking.track import TrackResult

FILENAME_DATETIME_FORMAT = "%Y%m%d-%H%M%S"


def recording_filename(now: datetime, pilot_name: str) -> str:
    """Base file name (no suffix) of a recovery's artifacts.

    ``LSO-20211111-143727-Pilot``; only ASCII letters and digits of the pilot
    name are kept.
    """
    pilot = "".join(c for c in pilot_name if c.isascii() and c.isalnum())
    return f"LSO-{now.strftime(FILENAME_DATETIME_FORMAT)}-{pilot}"


@runtime_checkable
class ChartRenderer(Protocol):
    """Draws the glide slope / lineup / AOA chart of a graded recovery."""

    def render(self, result: TrackResult, path: Path) -> Path:
        """Render *result* to *path* and return the file actually written."""
        ...
