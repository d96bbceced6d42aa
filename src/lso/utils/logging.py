"""Logging for the lso package.

Modules log through plain ``logging.getLogger(__name__)``; structlog only
formats the records, as console lines or JSON.  Everything hangs off the
``lso`` logger, which does not propagate to the root logger.

Pair tasks wrap their work in :func:`pair_context`, so every line they emit
carries the carrier and plane names.
"""

from __future__ import annotations

import logging
import sys
from contextlib import AbstractContextManager
from pathlib import Path

import structlog
from structlog.contextvars import bound_contextvars

PACKAGE_LOGGER = "lso"

_VERBOSITY_LEVELS = ("INFO", "DEBUG")

_PRE_CHAIN = [
    structlog.contextvars.merge_contextvars,
    structlog.stdlib.add_log_level,
    structlog.stdlib.add_logger_name,
    structlog.processors.TimeStamper(fmt="%H:%M:%S", utc=False),
    structlog.processors.StackInfoRenderer(),
    structlog.processors.format_exc_info,
    structlog.processors.UnicodeDecoder(),
]


def level_from_verbosity(verbose: int) -> str:
    """Level name for a ``-v`` count: none is INFO, one or more is DEBUG."""
    return _VERBOSITY_LEVELS[min(max(verbose, 0), len(_VERBOSITY_LEVELS) - 1)]


def pair_context(carrier_name: str, plane_name: str) -> AbstractContextManager:
    """Bind the names of a carrier/plane pair to all log lines inside the block."""
    return bound_contextvars(carrier_name=carrier_name, plane_name=plane_name)


def _formatter(log_json: bool, colors: bool | None) -> logging.Formatter:
    if log_json:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(
            colors=sys.stdout.isatty() if colors is None else colors
        )
    return structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=_PRE_CHAIN,
        processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
    )


def setup_logging(
    level: str = "INFO",
    log_file: str | None = None,
    log_json: bool = False,
    colors: bool | None = None,
) -> None:
    """(Re)configure the ``lso`` logger.

    Args:
        level: DEBUG, INFO, WARNING or ERROR; anything else means INFO.
        log_file: Also append to this file (parent directories are created).
        log_json: One JSON object per line instead of console lines.
        colors: ANSI colours for console lines; by default only on a terminal.
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    formatter = _formatter(log_json, colors)

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file is not None:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(str(path), encoding="utf-8"))

    structlog.configure(
        processors=[*_PRE_CHAIN, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    logger = logging.getLogger(PACKAGE_LOGGER)
    for old in logger.handlers:
        old.close()
    logger.handlers.clear()
    for handler in handlers:
        handler.setLevel(numeric_level)
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    logger.setLevel(numeric_level)
    logger.propagate = False

    # the event loop is chatty at DEBUG
    logging.getLogger("asyncio").setLevel(logging.WARNING)
