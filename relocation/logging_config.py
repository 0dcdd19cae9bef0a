"""
One log line format for the engine and the HTTP layer:

    2026-01-06T14:05:52Z [api] INFO Transfer req-1 -> technicians_dispatched

LOG_LEVEL picks the verbosity: INFO (default) for state transitions and
refusals, DEBUG for guard scans and snapshot diffs, TRACE for raw
PocketBase query parameters.
"""

from __future__ import annotations

import logging
import os
import re
import sys
import time

TRACE = 5
logging.addLevelName(TRACE, "TRACE")


def _trace(self: logging.Logger, message: object, *args: object, **kw: object) -> None:
    if self.isEnabledFor(TRACE):
        self._log(TRACE, message, args, **kw)  # type: ignore[arg-type]


logging.Logger.trace = _trace  # type: ignore[attr-defined]

LEVELS_BY_NAME = {
    "TRACE": TRACE,
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
}

# Loggers that install their own handlers and would otherwise print twice
CAPTURED_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access")

# Chatty transport loggers under the PocketBase SDK
QUIET_LOGGERS = ("httpx", "httpcore")


class ISO8601Formatter(logging.Formatter):
    """UTC second-precision timestamp, bracketed source, level name, message."""

    converter = time.gmtime

    def __init__(self, source: str = "relocation"):
        self.source = source
        super().__init__(
            fmt=f"%(asctime)s [{source.replace('%', '%%')}] %(levelname)s %(message)s",
            datefmt="%Y-%m-%dT%H:%M:%SZ",
        )


class HealthCheckFilter(logging.Filter):
    """Drops access-log lines for health checks below DEBUG."""

    HEALTH_REQUEST = re.compile(r'"GET /(?:api/)?health[ ?]')

    def filter(self, record: logging.LogRecord) -> bool:
        if record.levelno <= logging.DEBUG:
            return True
        return self.HEALTH_REQUEST.search(record.getMessage()) is None


def resolve_level(level: int | None = None, debug: bool | None = None) -> int:
    """Explicit level, else LOG_LEVEL, else DEBUG when debug is set, else INFO."""
    if level is not None:
        return level
    from_env = LEVELS_BY_NAME.get(os.getenv("LOG_LEVEL", "").strip().upper())
    if from_env is not None:
        return from_env
    return logging.DEBUG if debug else logging.INFO


def configure_logging(
    source: str = "relocation",
    level: int | None = None,
    debug: bool | None = None,
) -> logging.Logger:
    """Install a single stdout handler on the root logger and return it."""
    level = resolve_level(level, debug)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(ISO8601Formatter(source=source))
    handler.addFilter(HealthCheckFilter())

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    for name in CAPTURED_LOGGERS:
        captured = logging.getLogger(name)
        captured.handlers[:] = [handler]
        captured.setLevel(level)
        captured.propagate = False

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return root


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
