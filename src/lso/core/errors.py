"""Exception hierarchy for LSO."""

from __future__ import annotations


class LsoError(Exception):
    """Base class for all LSO errors."""


class TelemetryError(LsoError):
    """The telemetry source failed (connection lost, bad response, ...).

    Treated as transient by the run loop, which reconnects with backoff.
    """


class EntityNotFoundError(LsoError, LookupError):
    """A named unit does not exist (anymore) in the running mission."""

    def __init__(self, name: str) -> None:
        super().__init__(f"unit `{name}` not found")
        self.name = name


class AcmiParseError(LsoError, ValueError):
    """A recorded ACMI file could not be parsed."""

    def __init__(self, message: str, line_number: int | None = None) -> None:
        if line_number is not None:
            message = f"line {line_number}: {message}"
        super().__init__(message)
        self.line_number = line_number
