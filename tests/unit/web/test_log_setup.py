"""Tests for the shared structlog and stdlib logging setup."""

import io
import json
import logging

import structlog

from buildsync.logging import HANDLER_NAME, setup_logging


def capture_output() -> io.StringIO:
    """Point the installed handler at an in-memory stream."""
    stream = io.StringIO()
    handlers = [h for h in logging.getLogger().handlers if h.get_name() == HANDLER_NAME]
    assert len(handlers) == 1
    handlers[0].setStream(stream)
    return stream


def last_json_line(stream: io.StringIO) -> dict:
    return json.loads(stream.getvalue().splitlines()[-1])


class TestSetupLogging:
    """Tests for setup_logging."""

    def test_server_access_lines_are_json(self):
        """Test that uvicorn access records come out in the same JSON form as application events."""
        setup_logging(debug=False)
        stream = capture_output()

        logging.getLogger("uvicorn.access").info('%s - "%s %s" %d', "127.0.0.1", "GET", "/health", 200)

        line = last_json_line(stream)
        assert line["event"] == '127.0.0.1 - "GET /health" 200'
        assert line["level"] == "info"
        assert line["logger"] == "uvicorn.access"
        assert "timestamp" in line

    def test_structlog_events_keep_context(self):
        """Test that structlog key/value context is rendered as JSON fields."""
        setup_logging(debug=False)
        stream = capture_output()

        structlog.get_logger("buildsync.test").info("build_number_issued", key="com.x/ios", build_number=3)

        line = last_json_line(stream)
        assert line["event"] == "build_number_issued"
        assert line["build_number"] == 3
        assert line["key"] == "com.x/ios"

    def test_repeated_setup_keeps_one_handler(self):
        """Test that reconfiguring replaces the previous handler."""
        setup_logging(debug=False)
        setup_logging(debug=True)

        handlers = [h for h in logging.getLogger().handlers if h.get_name() == HANDLER_NAME]
        assert len(handlers) == 1
        assert logging.getLogger().level == logging.DEBUG

    def test_driver_loggers_quieted(self):
        """Test that database and HTTP driver loggers only pass warnings."""
        setup_logging(debug=True)
        stream = capture_output()

        logging.getLogger("pymongo.command").debug("noisy")
        logging.getLogger("httpx").info("noisy")

        assert "noisy" not in stream.getvalue()
