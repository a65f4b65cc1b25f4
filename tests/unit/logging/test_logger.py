# tests/unit/logging/test_logger.py — v2
"""Tests for logging/logger.py — logger factory and formatters."""

from __future__ import annotations

import io
import json
import logging

from autopost.config.settings import Settings
from autopost.logging.context import (
    clear_context,
    set_fingerprint_context,
    set_request_context,
)
from autopost.logging.logger import (
    JsonFormatter,
    TextFormatter,
    get_logger,
    setup_logging,
    setup_logging_from_settings,
)


def _record(msg: str = "Hello", data: dict | None = None) -> logging.LogRecord:
    record = logging.LogRecord(
        name="test", level=logging.INFO, pathname="", lineno=0,
        msg=msg, args=(), exc_info=None,
    )
    if data is not None:
        record.data = data
    return record


class TestJsonFormatter:
    def setup_method(self):
        clear_context()

    def teardown_method(self):
        clear_context()

    def test_format_basic(self):
        parsed = json.loads(JsonFormatter().format(_record()))
        assert parsed["level"] == "INFO"
        assert parsed["message"] == "Hello"
        assert "timestamp" in parsed
        assert "context" not in parsed

    def test_format_with_context(self):
        set_request_context("req-42")
        set_fingerprint_context("0123456789abcdef")
        parsed = json.loads(JsonFormatter().format(_record()))
        assert parsed["context"] == {
            "request_id": "req-42",
            "fingerprint": "0123456789abcdef",
        }

    def test_format_with_data(self):
        parsed = json.loads(JsonFormatter().format(_record(data={"requests": 1000})))
        assert parsed["data"] == {"requests": 1000}

    def test_format_exception(self):
        try:
            raise RuntimeError("bad")
        except RuntimeError:
            import sys
            record = logging.LogRecord(
                name="test", level=logging.ERROR, pathname="", lineno=0,
                msg="failed", args=(), exc_info=sys.exc_info(),
            )
        parsed = json.loads(JsonFormatter().format(record))
        assert "RuntimeError: bad" in parsed["exception"]


class TestTextFormatter:
    def teardown_method(self):
        clear_context()

    def test_format_basic(self):
        output = TextFormatter().format(_record("Hello text"))
        assert "Hello text" in output
        assert "INFO" in output

    def test_format_context_and_data(self):
        set_fingerprint_context("0123456789abcdef")
        output = TextFormatter().format(_record("stats", data={"hit_rate": "95.0%"}))
        assert "(0123456789abcdef)" in output
        assert "hit_rate=95.0%" in output


class TestGetLogger:
    def test_returns_logger(self):
        logger = get_logger("test_module")
        assert logger.name == "autopost.test_module"


class TestSetupLogging:
    def teardown_method(self):
        root = logging.getLogger("autopost")
        root.handlers.clear()
        root.setLevel(logging.NOTSET)
        root.propagate = True

    def test_json_console(self):
        setup_logging(level="DEBUG", log_format="json")
        root = logging.getLogger("autopost")
        assert root.level == logging.DEBUG
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, JsonFormatter)

    def test_reinit_does_not_stack_handlers(self):
        setup_logging()
        setup_logging()
        assert len(logging.getLogger("autopost").handlers) == 1

    def test_file_handler(self, tmp_path):
        log_file = tmp_path / "logs" / "autopost.log"
        setup_logging(log_format="text", log_file=str(log_file))
        root = logging.getLogger("autopost")
        assert len(root.handlers) == 2
        assert isinstance(root.handlers[1].formatter, TextFormatter)
        assert log_file.parent.exists()

    def test_custom_stream_and_no_propagation(self):
        stream = io.StringIO()
        setup_logging(log_format="json", stream=stream)
        get_logger("cli").info("to stderr")
        assert json.loads(stream.getvalue())["message"] == "to stderr"
        assert logging.getLogger("autopost").propagate is False

    def test_from_settings(self):
        setup_logging_from_settings(Settings(_env_file=None, log_level="WARNING"))
        assert logging.getLogger("autopost").level == logging.WARNING
