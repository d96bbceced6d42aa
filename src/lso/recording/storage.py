"""Graded recoveries on disk.

A results file is one document::

    {"version": 1,
     "metadata": {"result_count": N, "pilots": [...]},
     "results": [TrackResult.to_dict(), ...]}

packed as msgpack or JSON and optionally gzip-wrapped.  Readers sniff both
choices from the bytes, so the file name carries no meaning.
"""

from __future__ import annotations

import gzip
import json
import logging
from pathlib import Path
from typing import Any, Iterable

import msgpack
import numpy as np

from lso.tracking.track import TrackResult

logger = logging.getLogger(__name__)

RESULT_FORMAT_VERSION = 1

_GZIP_MAGIC = b"\x1f\x8b"


def _numpy_scalars(obj: Any) -> Any:
    # datums computed with numpy may leak np.float64 into the document
    if isinstance(obj, (np.floating, np.integer)):
        return obj.item()
    if isinstance(obj, np.ndarray):
        return obj.tolist()
    raise TypeError(f"Cannot serialize {type(obj).__name__}")


def _encode(document: dict, fmt: str) -> bytes:
    if fmt == "msgpack":
        return msgpack.packb(document, default=_numpy_scalars, use_bin_type=True)
    if fmt == "json":
        return json.dumps(document, default=_numpy_scalars).encode("utf-8")
    raise ValueError(f"unknown result format {fmt!r}")


def _decode(raw: bytes) -> dict:
    if raw.startswith(_GZIP_MAGIC):
        raw = gzip.decompress(raw)
    if raw.lstrip().startswith(b"{"):
        return json.loads(raw.decode("utf-8"))
    return msgpack.unpackb(raw, raw=False)


class ResultStorage:
    """Reads and writes results files."""

    @staticmethod
    def save(
        results: TrackResult | Iterable[TrackResult],
        filepath: str | Path,
        fmt: str = "msgpack",
        compression: bool = False,
    ) -> Path:
        """Store one result or several.  Returns the path written."""
        batch = [results] if isinstance(results, TrackResult) else list(results)
        document = {
            "version": RESULT_FORMAT_VERSION,
            "metadata": {
                "result_count": len(batch),
                "pilots": sorted({r.pilot_name for r in batch}),
            },
            "results": [r.to_dict() for r in batch],
        }
        raw = _encode(document, fmt)
        if compression:
            raw = gzip.compress(raw)

        path = Path(filepath)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(raw)
        logger.info("Stored %d result(s) in %s, %d bytes", len(batch), path, len(raw))
        return path

    @staticmethod
    def _read(filepath: Path) -> dict:
        return _decode(filepath.read_bytes())

    @staticmethod
    def load(filepath: str | Path) -> list[TrackResult]:
        path = Path(filepath)
        document = ResultStorage._read(path)
        version = document.get("version", RESULT_FORMAT_VERSION)
        if version > RESULT_FORMAT_VERSION:
            # newer writers only add keys; read what we know
            logger.warning("%s has format version %d, this reader knows %d", path, version, RESULT_FORMAT_VERSION)
        results = [TrackResult.from_dict(entry) for entry in document.get("results", [])]
        logger.debug("Read %d result(s) from %s", len(results), path)
        return results

    @staticmethod
    def get_metadata(filepath: str | Path) -> dict:
        """Only the metadata block."""
        return ResultStorage._read(Path(filepath)).get("metadata", {})
