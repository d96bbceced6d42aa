"""Tests for the lso command line."""

from __future__ import annotations

import pytest

from lso.__main__ import build_parser, main
from lso.recording.storage import ResultStorage


class TestParser:
    def test_file_command(self):
        args = build_parser().parse_args(["file", "rec.zip.acmi", "--auto-touchdown"])
        assert args.command == "file"
        assert args.input == "rec.zip.acmi"
        assert args.auto_touchdown

    def test_run_command(self):
        args = build_parser().parse_args(["-vv", "run", "--source", "pkg.mod:make", "--ki"])
        assert args.command == "run"
        assert args.verbose == 2
        assert args.source == "pkg.mod:make"
        assert args.ki

    def test_command_required(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args([])


class TestFileCommand:
    def test_grades_recording(self, config_path, make_recording, trap_scenario, tmp_path, capsys):
        path = tmp_path / "carrier-quals.acmi"
        path.write_text(make_recording(trap_scenario, dcs_grading="LSO: GRADE:OK  : WIRE# 3"))
        assert main(["-c", str(config_path), "file", str(path)]) == 0
        out = capsys.readouterr().out
        assert "Maverick: #3" in out
        assert "WIRE# 3" in out

    def test_stores_results(self, config_path, make_recording, trap_scenario, tmp_path):
        path = tmp_path / "carrier-quals.acmi"
        path.write_text(make_recording(trap_scenario))
        out_dir = tmp_path / "out"
        assert main(["-c", str(config_path), "file", str(path), "--out-dir", str(out_dir)]) == 0
        [result] = ResultStorage.load(out_dir / "carrier-quals.lso")
        assert result.grading.cable == 3

    def test_no_attempts(self, config_path, tmp_path, capsys):
        path = tmp_path / "empty.acmi"
        path.write_text("FileType=text/acmi/tacview\nFileVersion=2.2\n#0\n")
        assert main(["-c", str(config_path), "file", str(path)]) == 0
        assert "No recovery attempts found" in capsys.readouterr().out

    def test_missing_recording(self, config_path, tmp_path, capsys):
        assert main(["-c", str(config_path), "file", str(tmp_path / "nope.acmi")]) == 1
        assert "Recording not found" in capsys.readouterr().err

    def test_malformed_recording(self, config_path, tmp_path, capsys):
        path = tmp_path / "broken.acmi"
        path.write_text("FileType=text/csv\nFileVersion=2.2\n")
        assert main(["-c", str(config_path), "file", str(path)]) == 1
        assert "Failed to parse" in capsys.readouterr().err

    def test_malformed_reference(self, config_path, tmp_path, capsys):
        path = tmp_path / "broken.acmi"
        path.write_text("FileType=text/acmi/tacview\nFileVersion=2.2\n0,ReferenceLatitude=abc\n")
        assert main(["-c", str(config_path), "file", str(path)]) == 1
        err = capsys.readouterr().err
        assert "Failed to parse" in err
        assert "line 3" in err


class TestErrors:
    def test_missing_config(self, tmp_path, capsys):
        assert main(["-c", str(tmp_path / "missing.yaml"), "file", "x.acmi"]) == 1
        assert "Config file not found" in capsys.readouterr().err

    def test_run_without_source(self, config_path, capsys):
        assert main(["-c", str(config_path), "run"]) == 1
        assert "no telemetry source configured" in capsys.readouterr().err

    def test_run_with_malformed_source(self, config_path, capsys):
        assert main(["-c", str(config_path), "run", "--source", "not-a-factory"]) == 1
        assert "module:factory" in capsys.readouterr().err
