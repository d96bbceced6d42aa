"""Tests for the configuration schema."""

from __future__ import annotations

import pytest
from omegaconf import OmegaConf
from pydantic import ValidationError

from lso.core.config_schema import LsoConfigSchema, validate_config

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _load_default_dict(config_path):
    cfg = OmegaConf.load(config_path)
    return OmegaConf.to_container(cfg, resolve=True)


# ---------------------------------------------------------------------------
# Valid config passes
# ---------------------------------------------------------------------------


class TestValidConfig:
    def test_default_yaml_passes(self, config_path):
        schema = validate_config(_load_default_dict(config_path))
        assert isinstance(schema, LsoConfigSchema)
        assert schema.lso.detection.max_altitude_ft == 500.0
        assert schema.lso.results.format == "msgpack"

    def test_minimal_config_passes(self):
        schema = validate_config({"lso": {}})
        assert schema.lso.tracking.stop_distance_m == 100.0
        assert schema.lso.retry.max_interval_s == 30.0

    def test_extra_keys_allowed(self):
        validate_config({"lso": {"discord": {"webhook": "x"}}})


# ---------------------------------------------------------------------------
# Invalid values rejected
# ---------------------------------------------------------------------------


class TestInvalidConfig:
    def test_missing_root(self):
        with pytest.raises(ValidationError):
            validate_config({})

    def test_bad_log_level(self):
        with pytest.raises(ValidationError):
            validate_config({"lso": {"system": {"log_level": "VERBOSE"}}})

    def test_heading_dot_out_of_range(self):
        with pytest.raises(ValidationError):
            validate_config({"lso": {"detection": {"min_heading_dot": 1.5}}})

    def test_negative_interval(self):
        with pytest.raises(ValidationError):
            validate_config({"lso": {"recording": {"interval_s": -0.1}}})

    def test_retry_multiplier_below_one(self):
        with pytest.raises(ValidationError):
            validate_config({"lso": {"retry": {"multiplier": 0.5}}})

    def test_unknown_results_format(self):
        with pytest.raises(ValidationError):
            validate_config({"lso": {"results": {"format": "xml"}}})
