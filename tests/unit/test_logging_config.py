"""Tests for the unified log format.

Target format: 2026-01-06T14:05:52Z [source] LEVEL message
"""

from __future__ import annotations

import io
import logging
import re
import sys
from datetime import datetime

import pytest

from relocation.logging_config import (
    TRACE,
    HealthCheckFilter,
    ISO8601Formatter,
    configure_logging,
    get_logger,
    resolve_level,
)


def make_record(msg, level=logging.INFO, args=(), name="relocation.engine"):
    return logging.LogRecord(name=name, level=level, pathname="", lineno=0, msg=msg, args=args, exc_info=None)


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)


class TestISO8601Formatter:
    """The formatter produces one parseable line per record."""

    def test_format(self):
        output = ISO8601Formatter(source="engine").format(make_record("Transfer req-1 -> beds_allocated"))

        pattern = r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}Z \[engine\] INFO Transfer req-1 -> beds_allocated$"
        assert re.match(pattern, output), f"Output '{output}' doesn't match expected format"

    def test_timestamp_is_utc(self):
        timestamp = ISO8601Formatter(source="api").format(make_record("x")).split(" ")[0]
        assert timestamp.endswith("Z")
        assert datetime.fromisoformat(timestamp.replace("Z", "+00:00")) is not None

    def test_levels(self):
        formatter = ISO8601Formatter(source="api")
        for level in (logging.DEBUG, logging.INFO, logging.WARNING, logging.ERROR):
            output = formatter.format(make_record("m", level=level))
            assert f"] {logging.getLevelName(level)} " in output

    def test_trace_level_name(self):
        output = ISO8601Formatter().format(make_record("raw query", level=TRACE))
        assert "[relocation] TRACE raw query" in output

    def test_args_are_interpolated(self):
        output = ISO8601Formatter().format(make_record("Refused %s for actor %s", args=("allocate_beds", "u1")))
        assert "Refused allocate_beds for actor u1" in output

    def test_exception_text_is_appended(self):
        try:
            raise RuntimeError("store down")
        except RuntimeError:
            record = make_record("commit failed")
            record.exc_info = sys.exc_info()

        output = ISO8601Formatter().format(record)
        assert "commit failed\nTraceback" in output
        assert "RuntimeError: store down" in output


class TestHealthCheckFilter:
    def test_suppresses_health_access_logs(self):
        check = HealthCheckFilter()
        assert check.filter(make_record('127.0.0.1:5 - "GET /health HTTP/1.1" 200 OK', name="uvicorn.access")) is False
        assert check.filter(make_record('10.0.0.2:9 - "GET /api/health HTTP/1.1" 200', name="uvicorn.access")) is False

    def test_allows_other_paths(self):
        record = make_record('127.0.0.1:5 - "POST /api/transfers HTTP/1.1" 201', name="uvicorn.access")
        assert HealthCheckFilter().filter(record) is True

    def test_allows_health_at_debug(self):
        record = make_record('127.0.0.1:5 - "GET /health HTTP/1.1" 200 OK', level=logging.DEBUG)
        assert HealthCheckFilter().filter(record) is True


class TestConfigureLogging:
    """Tests for configure_logging."""

    def test_default_level_is_info(self, restore_root_logger, monkeypatch):
        monkeypatch.delenv("LOG_LEVEL", raising=False)
        assert configure_logging(source="test").level == logging.INFO

    def test_debug_flag(self, restore_root_logger, monkeypatch):
        monkeypatch.delenv("LOG_LEVEL", raising=False)
        assert configure_logging(source="test", debug=True).level == logging.DEBUG

    def test_trace_from_environment(self, restore_root_logger, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "trace")
        assert configure_logging(source="test").level == TRACE

    def test_explicit_level_beats_environment(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "DEBUG")
        assert resolve_level(logging.WARNING) == logging.WARNING

    def test_unknown_environment_level_falls_back(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "chatty")
        assert resolve_level() == logging.INFO

    def test_uvicorn_routes_through_one_handler(self, restore_root_logger):
        root = configure_logging(source="api")
        access = logging.getLogger("uvicorn.access")
        assert access.propagate is False
        assert access.handlers == root.handlers

    def test_end_to_end(self, restore_root_logger):
        configure_logging(source="api")
        stream = io.StringIO()
        root = logging.getLogger()
        root.handlers[0].setStream(stream)

        get_logger("relocation.engine.transfer_service").info("Transfer request req-1 created")

        pattern = r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}Z \[api\] INFO Transfer request req-1 created\n$"
        assert re.match(pattern, stream.getvalue())
