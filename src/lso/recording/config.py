"""Recording configuration."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from lso.core.config import to_plain_dict

logger = logging.getLogger(__name__)


@dataclass
class RecordingConfig:
    """Recorder & result storage configuration."""

    interval_s: float = 0.1
    # Keep recording this long after the land event to catch bolters.
    landed_grace_s: float = 10.0
    out_dir: str = "."
    compressed: bool = True
    author: str = "lso"

    # Result storage
    results_format: str = "msgpack"  # "msgpack" or "json"
    results_compression: bool = False

    @classmethod
    def from_omegaconf(cls, cfg: Any, results: Any = None) -> RecordingConfig:
        """Build from the ``recording`` (and optionally ``results``) sections."""
        cfg = to_plain_dict(cfg)
        results = to_plain_dict(results)

        fmt = str(results.get("format", "msgpack"))
        if fmt not in ("msgpack", "json"):
            logger.warning("Unknown results format %r, using msgpack", fmt)
            fmt = "msgpack"

        return cls(
            interval_s=float(cfg.get("interval_s", 0.1)),
            landed_grace_s=float(cfg.get("landed_grace_s", 10.0)),
            out_dir=str(cfg.get("out_dir", ".")),
            compressed=bool(cfg.get("compressed", True)),
            author=str(cfg.get("author", "lso")),
            results_format=fmt,
            results_compression=bool(results.get("compression", False)),
        )

    @property
    def acmi_suffix(self) -> str:
        return ".zip.acmi" if self.compressed else ".acmi"
