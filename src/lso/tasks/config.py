"""Service level configuration: telemetry connection and retry policy."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from lso.core.config import to_plain_dict


@dataclass
class TelemetryConfig:
    # "package.module:factory"; the factory gets this config and returns a TelemetrySource
    source: str | None = None
    uri: str = "http://127.0.0.1:50051"
    include_ki: bool = False

    @classmethod
    def from_omegaconf(cls, cfg: Any) -> TelemetryConfig:
        cfg = to_plain_dict(cfg)
        source = cfg.get("source")
        return cls(
            source=str(source) if source else None,
            uri=str(cfg.get("uri", "http://127.0.0.1:50051")),
            include_ki=bool(cfg.get("include_ki", False)),
        )


@dataclass
class RetryConfig:
    """Exponential backoff between reconnects.  Retries never give up."""

    initial_s: float = 0.5
    multiplier: float = 1.5
    max_interval_s: float = 30.0

    @classmethod
    def from_omegaconf(cls, cfg: Any) -> RetryConfig:
        cfg = to_plain_dict(cfg)
        return cls(
            initial_s=float(cfg.get("initial_s", 0.5)),
            multiplier=float(cfg.get("multiplier", 1.5)),
            max_interval_s=float(cfg.get("max_interval_s", 30.0)),
        )

    def delays(self):
        """Endless sequence of backoff delays in seconds."""
        delay = self.initial_s
        while True:
            yield delay
            delay = min(delay * self.multiplier, self.max_interval_s)
