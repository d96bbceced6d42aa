"""Schema of config/default.yaml, checked by ``LsoConfig.load(validate=True)``.

Only value ranges are enforced; unknown sections pass through untouched.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field


class SystemConfig(BaseModel):
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_file: str | None = None
    log_json: bool = False
    validate_config: bool = False


class TelemetryConfig(BaseModel):
    source: str | None = None
    uri: str = "http://127.0.0.1:50051"
    include_ki: bool = False


class DetectionConfig(BaseModel):
    poll_interval_s: float = Field(default=2.0, gt=0)
    max_altitude_ft: float = Field(default=500.0, gt=0)
    max_distance_nm: float = Field(default=1.5, gt=0)
    min_distance_m: float = Field(default=200.0, ge=0)
    min_heading_dot: float = Field(default=0.65, ge=-1, le=1)
    require_behind: bool = True


class TrackingConfig(BaseModel):
    stop_distance_m: float = Field(default=100.0, gt=0)
    cable_compensation_m: float = 3.0
    touchdown_alt_m: float = Field(default=0.09, ge=0)


class RecordingConfig(BaseModel):
    interval_s: float = Field(default=0.1, gt=0)
    landed_grace_s: float = Field(default=10.0, ge=0)
    out_dir: str = "."
    compressed: bool = True
    author: str = "lso"


class RetryConfig(BaseModel):
    initial_s: float = Field(default=0.5, gt=0)
    multiplier: float = Field(default=1.5, ge=1)
    max_interval_s: float = Field(default=30.0, gt=0)


class ResultsConfig(BaseModel):
    format: Literal["msgpack", "json"] = "msgpack"
    compression: bool = False


class LsoRootConfig(BaseModel):
    system: SystemConfig = Field(default_factory=SystemConfig)
    telemetry: TelemetryConfig = Field(default_factory=TelemetryConfig)
    detection: DetectionConfig = Field(default_factory=DetectionConfig)
    tracking: TrackingConfig = Field(default_factory=TrackingConfig)
    recording: RecordingConfig = Field(default_factory=RecordingConfig)
    retry: RetryConfig = Field(default_factory=RetryConfig)
    results: ResultsConfig = Field(default_factory=ResultsConfig)

    model_config = {"extra": "allow"}


class LsoConfigSchema(BaseModel):
    """The files keep everything under one ``lso`` key."""

    lso: LsoRootConfig

    model_config = {"extra": "allow"}


def validate_config(cfg_dict: dict) -> LsoConfigSchema:
    """Check a resolved config tree; bad values raise ``pydantic.ValidationError``."""
    return LsoConfigSchema.model_validate(cfg_dict)
