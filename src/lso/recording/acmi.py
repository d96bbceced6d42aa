"""Tacview ACMI 2.2 text format: record types, writer and parser.

Only the subset needed for recovery recordings is modelled.  An ACMI file is
line based::

    FileType=text/acmi/tacview
    FileVersion=2.2
    0,ReferenceTime=2021-11-11T14:37:27Z
    #12.3
    1,T=0.0012|-0.0003|20.15|0|0|350.2|1234.5|-567.8|350.2,Name=CVN_71
    0,Event=Landed|2|1|

Object ids are hexadecimal.  ``T`` slots left empty mean "unchanged since the
previous update".  Property values escape ``,`` as ``\\,`` and continue over
newlines with a trailing backslash.
"""

from __future__ import annotations

import io
import logging
import re
import zipfile
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import BinaryIO, Iterable, Iterator, Union

from lso.core.errors import AcmiParseError

logger = logging.getLogger(__name__)

FILE_TYPE = "text/acmi/tacview"
FILE_VERSION = "2.2"

ZIP_MAGIC = b"PK\x03\x04"

_OBJECT_ID = re.compile(r"[0-9a-fA-F]+")

# Properties read as numbers; malformed values fail parsing.
NUMERIC_PROPERTIES = frozenset({"AOA", "ReferenceLatitude", "ReferenceLongitude"})

# Name of the single entry inside a ``.zip.acmi`` archive.
ZIP_ENTRY_NAME = "acmi.txt"


@dataclass
class Coords:
    """Sparse ``T=`` value; ``None`` slots are written empty."""

    longitude: float | None = None
    latitude: float | None = None
    altitude: float | None = None
    roll: float | None = None
    pitch: float | None = None
    yaw: float | None = None
    u: float | None = None
    v: float | None = None
    heading: float | None = None

    def is_empty(self) -> bool:
        return all(getattr(self, f.name) is None for f in fields(self))

    def has_orientation(self) -> bool:
        return any(x is not None for x in (self.roll, self.pitch, self.yaw, self.heading))

    def encode(self) -> str:
        if self.has_orientation():
            slots = [
                self.longitude, self.latitude, self.altitude,
                self.roll, self.pitch, self.yaw,
                self.u, self.v, self.heading,
            ]
        elif self.u is not None or self.v is not None:
            slots = [self.longitude, self.latitude, self.altitude, self.u, self.v]
        else:
            slots = [self.longitude, self.latitude, self.altitude]
        return "|".join("" if s is None else format_float(s) for s in slots)

    @classmethod
    def decode(cls, value: str) -> Coords:
        """Parse a ``T=`` value in any of the 3, 5, 6 or 9 slot layouts."""
        parts = [_parse_optional_float(p) for p in value.split("|")]
        n = len(parts)
        if n in (3, 6, 9):
            return cls(*parts)
        if n == 5:
            lon, lat, alt, u, v = parts
            return cls(lon, lat, alt, u=u, v=v)
        raise ValueError(f"unexpected number of T slots: {n}")


@dataclass
class GlobalProperty:
    key: str
    value: str


@dataclass
class Frame:
    time: float


@dataclass
class Update:
    """Property update of one object.  ``props`` holds everything but ``T``."""

    id: int
    coords: Coords | None = None
    props: dict[str, str] = field(default_factory=dict)

    @property
    def name(self) -> str | None:
        return self.props.get("Name")

    @property
    def pilot(self) -> str | None:
        return self.props.get("Pilot")

    @property
    def tags(self) -> set[str] | None:
        value = self.props.get("Type")
        if value is None:
            return None
        return {t for t in value.split("+") if t}

    @property
    def aoa(self) -> float | None:
        value = self.props.get("AOA")
        if value is None:
            return None
        try:
            return float(value)
        except ValueError:
            raise AcmiParseError(f"invalid AOA `{value}`") from None


@dataclass
class Remove:
    id: int


@dataclass
class Event:
    kind: str
    params: list[str] = field(default_factory=list)
    text: str | None = None


Record = Union[GlobalProperty, Frame, Update, Remove, Event]


def format_float(value: float) -> str:
    """Shortest text that parses back to exactly *value*."""
    if value == 0.0:
        return "0"
    if float(value).is_integer() and abs(value) < 1e15:
        return str(int(value))
    return repr(float(value))


def _parse_optional_float(s: str) -> float | None:
    return float(s) if s else None


def escape(value: str) -> str:
    return value.replace("\\", "\\\\").replace(",", "\\,").replace("\n", "\\\n")


def _unescape(value: str) -> str:
    out = []
    chars = iter(value)
    for c in chars:
        if c == "\\":
            out.append(next(chars, ""))
        else:
            out.append(c)
    return "".join(out)


def _split_unescaped(line: str, sep: str = ",") -> list[str]:
    parts = []
    current = []
    escaped = False
    for c in line:
        if escaped:
            current.append("\\")
            current.append(c)
            escaped = False
        elif c == "\\":
            escaped = True
        elif c == sep:
            parts.append("".join(current))
            current = []
        else:
            current.append(c)
    if escaped:
        current.append("\\")
    parts.append("".join(current))
    return parts


def encode_record(record: Record) -> str:
    if isinstance(record, GlobalProperty):
        return f"0,{record.key}={escape(record.value)}"
    if isinstance(record, Frame):
        return f"#{format_float(record.time)}"
    if isinstance(record, Update):
        parts = [format(record.id, "x")]
        if record.coords is not None and not record.coords.is_empty():
            parts.append(f"T={record.coords.encode()}")
        parts.extend(f"{k}={escape(v)}" for k, v in record.props.items())
        return ",".join(parts)
    if isinstance(record, Remove):
        return f"-{record.id:x}"
    if isinstance(record, Event):
        value = "|".join([record.kind, *record.params, record.text or ""])
        return f"0,Event={escape(value)}"
    raise TypeError(f"not an ACMI record: {record!r}")


class AcmiWriter:
    """Accumulates records in memory; :meth:`save` writes the finished file.

    Nothing touches the disk until :meth:`save`, so an abandoned recording
    leaves no partial file behind.
    """

    def __init__(self) -> None:
        self._buf = io.StringIO()
        self._buf.write(f"FileType={FILE_TYPE}\n")
        self._buf.write(f"FileVersion={FILE_VERSION}\n")
        self.record_count = 0

    def write(self, record: Record) -> None:
        self._buf.write(encode_record(record))
        self._buf.write("\n")
        self.record_count += 1

    def write_all(self, records: Iterable[Record]) -> None:
        for record in records:
            self.write(record)

    def getvalue(self) -> str:
        return self._buf.getvalue()

    def to_bytes(self, compressed: bool = True) -> bytes:
        data = self.getvalue().encode("utf-8")
        if not compressed:
            return data
        out = io.BytesIO()
        with zipfile.ZipFile(out, "w", compression=zipfile.ZIP_DEFLATED) as zf:
            zf.writestr(ZIP_ENTRY_NAME, data)
        return out.getvalue()

    def save(self, path: str | Path, compressed: bool = True) -> Path:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        raw = self.to_bytes(compressed)
        path.write_bytes(raw)
        logger.info("Saved %d ACMI records to %s (%d bytes)", self.record_count, path, len(raw))
        return path


def read_acmi_text(raw: bytes) -> str:
    """Decode file content, unpacking it first when it is a zip archive."""
    if raw.startswith(ZIP_MAGIC):
        try:
            with zipfile.ZipFile(io.BytesIO(raw), "r") as zf:
                infos = zf.infolist()
                if not infos:
                    raise AcmiParseError("zip archive is empty")
                raw = zf.read(infos[0])
        except zipfile.BadZipFile as e:
            raise AcmiParseError(f"invalid zip archive: {e}") from e
    return raw.decode("utf-8-sig", errors="replace")


def _logical_lines(text: str) -> Iterator[tuple[int, str]]:
    """Join backslash-continued lines; yields (first line number, line)."""
    pending: list[str] = []
    start = 0
    for number, line in enumerate(text.splitlines(), start=1):
        if not pending:
            start = number
        trailing = len(line) - len(line.rstrip("\\"))
        if trailing % 2 == 1:
            pending.append(line[:-1] + "\n")
            continue
        pending.append(line)
        yield start, "".join(pending)
        pending = []
    if pending:
        yield start, "".join(pending)


def _parse_id(value: str, line_number: int) -> int:
    try:
        return int(value, 16)
    except ValueError:
        raise AcmiParseError(f"invalid object id `{value}`", line_number) from None


def _check_numeric(key: str, value: str, line_number: int) -> None:
    if key in NUMERIC_PROPERTIES:
        try:
            float(value)
        except ValueError:
            raise AcmiParseError(f"invalid {key} `{value}`", line_number) from None


def _parse_event(value: str) -> Event:
    """Split ``Kind|id|...|text``; the text after the object ids may contain ``|``."""
    kind, *parts = value.split("|")
    n = 0
    while n < len(parts) - 1 and _OBJECT_ID.fullmatch(parts[n]):
        n += 1
    text = "|".join(parts[n:])
    return Event(kind, parts[:n], text or None)


def parse_line(line: str, line_number: int = 0) -> list[Record]:
    """Parse one logical (already joined) line into records."""
    if line.startswith("#"):
        try:
            return [Frame(float(line[1:]))]
        except ValueError:
            raise AcmiParseError(f"invalid frame time `{line[1:]}`", line_number) from None

    if line.startswith("-"):
        return [Remove(_parse_id(line[1:], line_number))]

    head, *segments = _split_unescaped(line)
    obj_id = _parse_id(head, line_number)

    records: list[Record] = []
    update = Update(obj_id)
    for segment in segments:
        if "=" not in segment:
            raise AcmiParseError(f"property without value `{segment}`", line_number)
        key, raw_value = segment.split("=", 1)

        if obj_id == 0:
            value = _unescape(raw_value)
            if key == "Event":
                records.append(_parse_event(value))
            else:
                _check_numeric(key, value, line_number)
                records.append(GlobalProperty(key, value))
            continue

        if key == "T":
            try:
                update.coords = Coords.decode(raw_value)
            except ValueError as e:
                raise AcmiParseError(f"invalid coordinates `{raw_value}`: {e}", line_number) from None
        else:
            value = _unescape(raw_value)
            _check_numeric(key, value, line_number)
            update.props[key] = value

    if obj_id != 0:
        records.append(update)
    return records


def parse_text(text: str) -> Iterator[Record]:
    lines = _logical_lines(text)

    header = {}
    for _ in range(2):
        entry = next(lines, None)
        if entry is None:
            raise AcmiParseError("missing file header", 1)
        number, line = entry
        key, _, value = line.partition("=")
        header[key.strip()] = value.strip()
        if key.strip() not in ("FileType", "FileVersion"):
            raise AcmiParseError(f"unexpected header line `{line}`", number)

    if header.get("FileType") != FILE_TYPE:
        raise AcmiParseError(f"unsupported file type `{header.get('FileType')}`", 1)
    if not header.get("FileVersion", "").startswith("2."):
        raise AcmiParseError(f"unsupported file version `{header.get('FileVersion')}`", 2)

    for number, line in lines:
        if not line.strip() or line.startswith("//"):
            continue
        yield from parse_line(line, number)


def iter_records(source: str | Path | bytes | BinaryIO) -> Iterator[Record]:
    """Parse an ACMI file (plain or zip) into records.

    *source* is a path, the raw file content or a binary file object.
    """
    if isinstance(source, (str, Path)):
        raw = Path(source).read_bytes()
    elif isinstance(source, bytes):
        raw = source
    else:
        raw = source.read()
    return parse_text(read_acmi_text(raw))
