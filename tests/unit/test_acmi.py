"""Tests for the ACMI writer and parser."""

from __future__ import annotations

import io

import pytest

from lso.core.errors import AcmiParseError
from lso.recording.acmi import (
    AcmiWriter,
    Coords,
    Event,
    Frame,
    GlobalProperty,
    Remove,
    Update,
    encode_record,
    escape,
    format_float,
    iter_records,
    parse_line,
    parse_text,
)

HEADER = "FileType=text/acmi/tacview\nFileVersion=2.2\n"


class TestFormatFloat:
    def test_integers_without_fraction(self):
        assert format_float(0.0) == "0"
        assert format_float(-0.0) == "0"
        assert format_float(20.0) == "20"

    def test_shortest_repr(self):
        assert format_float(0.1) == "0.1"
        assert float(format_float(41.1234568)) == 41.1234568


class TestCoords:
    def test_full_layout(self):
        coords = Coords(1.5, 2.5, 3.0, 0.1, 0.2, 0.3, 100.0, 200.0, 350.9)
        assert coords.encode() == "1.5|2.5|3|0.1|0.2|0.3|100|200|350.9"

    def test_sparse_slots_empty(self):
        assert Coords(altitude=20.0, heading=90.0).encode() == "||20||||||90"

    def test_short_layouts(self):
        assert Coords(1.0, 2.0, 3.0).encode() == "1|2|3"
        assert Coords(u=5.0).encode() == "|||5|"

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("1|2|3", Coords(1.0, 2.0, 3.0)),
            ("1|2|3|4|5", Coords(1.0, 2.0, 3.0, u=4.0, v=5.0)),
            ("1|2|3|4|5|6", Coords(1.0, 2.0, 3.0, 4.0, 5.0, 6.0)),
            ("||3||||||9", Coords(altitude=3.0, heading=9.0)),
        ],
    )
    def test_decode_layouts(self, value, expected):
        assert Coords.decode(value) == expected

    def test_decode_bad_slot_count(self):
        with pytest.raises(ValueError):
            Coords.decode("1|2")

    def test_empty(self):
        assert Coords().is_empty()
        assert not Coords(v=0.0).is_empty()
        assert Coords(roll=0.0).has_orientation()


class TestEncodeRecord:
    def test_global_property(self):
        assert encode_record(GlobalProperty("Title", "a, b")) == "0,Title=a\\, b"

    def test_frame(self):
        assert encode_record(Frame(12.3)) == "#12.3"

    def test_update(self):
        update = Update(0x2A, Coords(altitude=5.0), {"Name": "FA-18C_hornet"})
        assert encode_record(update) == "2a,T=||5,Name=FA-18C_hornet"

    def test_update_without_changes(self):
        assert encode_record(Update(1, Coords())) == "1"

    def test_remove(self):
        assert encode_record(Remove(0x10)) == "-10"

    def test_event(self):
        assert encode_record(Event("Landed", ["2", "1"])) == "0,Event=Landed|2|1|"
        assert (
            encode_record(Event("Message", ["2", "1"], "GRADE:OK, WIRE# 3"))
            == "0,Event=Message|2|1|GRADE:OK\\, WIRE# 3"
        )

    def test_escape(self):
        assert escape("a\\b,c\nd") == "a\\\\b\\,c\\\nd"


class TestParse:
    def test_frame(self):
        assert parse_line("#10.5") == [Frame(10.5)]

    def test_update_with_escaped_comma(self):
        [update] = parse_line("2,T=1|2|3,Pilot=Doe\\, John,AOA=8.1")
        assert update.id == 2
        assert update.coords == Coords(1.0, 2.0, 3.0)
        assert update.pilot == "Doe, John"
        assert update.aoa == 8.1

    def test_type_tags(self):
        [update] = parse_line("1,Type=Sea+Watercraft+AircraftCarrier,Name=CVN_71")
        assert update.tags == {"Sea", "Watercraft", "AircraftCarrier"}
        assert update.name == "CVN_71"

    def test_events(self):
        assert parse_line("0,Event=Landed|2|1|") == [Event("Landed", ["2", "1"], None)]
        assert parse_line("0,Event=Message|2|1|WIRE# 3") == [Event("Message", ["2", "1"], "WIRE# 3")]

    def test_event_text_may_contain_separator(self):
        [event] = parse_line("0,Event=Message|2|1|LSO: GRADE:OK | WIRE# 3")
        assert event == Event("Message", ["2", "1"], "LSO: GRADE:OK | WIRE# 3")

    def test_event_without_ids(self):
        assert parse_line("0,Event=Bookmark|Trap") == [Event("Bookmark", [], "Trap")]

    def test_global_property(self):
        assert parse_line("0,ReferenceTime=2021-11-11T14:00:00Z") == [
            GlobalProperty("ReferenceTime", "2021-11-11T14:00:00Z")
        ]

    def test_remove(self):
        assert parse_line("-1f") == [Remove(0x1F)]

    def test_invalid_id(self):
        with pytest.raises(AcmiParseError, match="line 7"):
            parse_line("zz,T=1|2|3", 7)

    def test_invalid_coords(self):
        with pytest.raises(AcmiParseError):
            parse_line("1,T=a|b|c")

    @pytest.mark.parametrize(
        "line", ["0,ReferenceLatitude=abc", "0,ReferenceLongitude=", "2,T=1|2|3,AOA=high"]
    )
    def test_invalid_numeric_property(self, line):
        with pytest.raises(AcmiParseError, match="line 4"):
            parse_line(line, 4)

    def test_invalid_aoa_on_built_update(self):
        with pytest.raises(AcmiParseError):
            Update(2, props={"AOA": "high"}).aoa

    def test_property_without_value(self):
        with pytest.raises(AcmiParseError):
            parse_line("1,Name")

    def test_multiline_property(self):
        text = HEADER + "0,Comments=first\\\nsecond\n#1\n"
        records = list(parse_text(text))
        assert records == [GlobalProperty("Comments", "first\nsecond"), Frame(1.0)]

    def test_missing_header(self):
        with pytest.raises(AcmiParseError):
            list(parse_text("#1\n1,T=1|2|3\n"))

    def test_wrong_file_type(self):
        with pytest.raises(AcmiParseError):
            list(parse_text("FileType=text/csv\nFileVersion=2.2\n"))

    def test_comments_and_blank_lines_skipped(self):
        records = list(parse_text(HEADER + "\n// comment\n#2\n"))
        assert records == [Frame(2.0)]


class TestWriter:
    def _writer(self) -> AcmiWriter:
        writer = AcmiWriter()
        writer.write(GlobalProperty("Title", "Carrier Recovery, Case I"))
        writer.write_all(
            [
                Frame(1.0),
                Update(1, Coords(0.001, 0.002, 0.0, 0.0, 0.0, 0.0, 10.0, 20.0, 0.0), {"Name": "CVN_71"}),
                Update(2, Coords(altitude=150.0), {"AOA": "8.1"}),
                Event("Message", ["2", "1"], "LSO: GRADE:OK\n: WIRE# 3"),
            ]
        )
        return writer

    def test_header_first(self):
        assert self._writer().getvalue().startswith(HEADER)

    def test_record_count(self):
        assert self._writer().record_count == 5

    @pytest.mark.parametrize("compressed", [True, False])
    def test_save_and_read_back(self, tmp_path, compressed):
        writer = self._writer()
        path = writer.save(tmp_path / "out" / "rec.acmi", compressed=compressed)
        records = list(iter_records(path))
        assert records[0] == GlobalProperty("Title", "Carrier Recovery, Case I")
        assert records[2].coords.u == 10.0
        assert records[4] == Event("Message", ["2", "1"], "LSO: GRADE:OK\n: WIRE# 3")

    def test_zip_detected_from_content(self):
        raw = self._writer().to_bytes(compressed=True)
        assert raw.startswith(b"PK\x03\x04")
        assert len(list(iter_records(io.BytesIO(raw)))) == 5

    def test_bad_zip(self):
        with pytest.raises(AcmiParseError):
            list(iter_records(b"PK\x03\x04garbage"))
