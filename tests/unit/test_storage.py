"""Tests for lso.recording.storage: result export/import."""

from __future__ import annotations

import gzip
import json

import msgpack
import pytest

from lso.recording.storage import RESULT_FORMAT_VERSION, ResultStorage
from lso.tracking.track import Datum, Grading, TrackResult


def _result(pilot: str = "Maverick", cable: int | None = 3) -> TrackResult:
    return TrackResult(
        pilot_name=pilot,
        glide_slope=3.5,
        grading=Grading.recovered(cable, cable_estimated=2),
        dcs_grading="LSO: GRADE:OK  : WIRE# 3",
        datums=tuple(Datum(x=100.0 - i, y=0.5 * i, aoa=8.1, alt=10.0 - i) for i in range(5)),
        plane_type="FA-18C_hornet",
    )


# ---------------------------------------------------------------------------
# Roundtrips
# ---------------------------------------------------------------------------


class TestResultStorageRoundtrip:
    @pytest.mark.parametrize("fmt", ["msgpack", "json"])
    def test_save_load(self, tmp_path, fmt):
        path = ResultStorage.save(_result(), tmp_path / f"r.{fmt}", fmt=fmt)
        assert ResultStorage.load(path) == [_result()]

    @pytest.mark.parametrize("fmt", ["msgpack", "json"])
    def test_compressed(self, tmp_path, fmt):
        path = ResultStorage.save(_result(), tmp_path / "r.lso", fmt=fmt, compression=True)
        assert path.read_bytes()[:2] == b"\x1f\x8b"
        assert ResultStorage.load(path) == [_result()]

    def test_multiple_results(self, tmp_path):
        results = [_result("Maverick"), _result("Goose", cable=None)]
        path = ResultStorage.save(results, tmp_path / "many.lso")
        loaded = ResultStorage.load(path)
        assert loaded == results
        assert loaded[1].grading.summary() == "-"

    def test_creates_parent_dirs(self, tmp_path):
        path = ResultStorage.save(_result(), tmp_path / "a" / "b" / "r.lso")
        assert path.exists()


# ---------------------------------------------------------------------------
# File layout
# ---------------------------------------------------------------------------


class TestResultStorageFormat:
    def test_msgpack_layout(self, tmp_path):
        path = ResultStorage.save(_result(), tmp_path / "r.lso")
        data = msgpack.unpackb(path.read_bytes(), raw=False)
        assert data["version"] == RESULT_FORMAT_VERSION
        assert data["results"][0]["grading"]["kind"] == "recovered"

    def test_json_layout(self, tmp_path):
        path = ResultStorage.save(_result(), tmp_path / "r.json", fmt="json", compression=False)
        data = json.loads(path.read_text())
        assert data["results"][0]["datums"][0] == {"x": 100.0, "y": 0.0, "aoa": 8.1, "alt": 10.0}

    def test_metadata(self, tmp_path):
        path = ResultStorage.save([_result("Maverick"), _result("Goose")], tmp_path / "r.lso")
        meta = ResultStorage.get_metadata(path)
        assert meta["result_count"] == 2
        assert meta["pilots"] == ["Goose", "Maverick"]

    def test_unknown_format(self, tmp_path):
        with pytest.raises(ValueError):
            ResultStorage.save(_result(), tmp_path / "r.xml", fmt="xml")

    def test_newer_version_still_loads(self, tmp_path):
        path = tmp_path / "future.lso"
        data = {"version": RESULT_FORMAT_VERSION + 1, "results": [_result().to_dict()]}
        path.write_bytes(gzip.compress(msgpack.packb(data)))
        assert ResultStorage.load(path) == [_result()]
