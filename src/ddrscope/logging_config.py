"""structlog configuration.

Logging is quiet (warnings only) unless DDRSCOPE_DEBUG is set. When a
log file is given, events are written there as JSON lines instead of
being rendered to stderr.
"""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path
from typing import TextIO

import structlog

from ddrscope.config import ENV_DEBUG

_log_stream: TextIO | None = None


def _debug_enabled() -> bool:
    return os.environ.get(ENV_DEBUG, "").lower() not in ("", "0", "false", "no")


def configure_logging(
    debug: bool | None = None,
    log_file: Path | None = None,
) -> None:
    """Configure structlog for the process; later calls replace the setup.

    A log file opened by an earlier call is closed first.
    """
    global _log_stream
    if debug is None:
        debug = _debug_enabled()
    level = logging.DEBUG if debug else logging.WARNING

    processors: list = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    if _log_stream is not None:
        _log_stream.close()
        _log_stream = None

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        stream = _log_stream = log_file.open("a", encoding="utf-8")
        processors.append(structlog.processors.JSONRenderer())
    else:
        stream = sys.stderr
        processors.append(structlog.dev.ConsoleRenderer(colors=False))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.PrintLoggerFactory(file=stream),
        cache_logger_on_first_use=False,
    )
