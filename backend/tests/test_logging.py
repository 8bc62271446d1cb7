"""
Tests for structured logging configuration and JSON formatter.
"""
import json
import logging

from ielts_mock.core.logging_config import (
    JSONFormatter,
    build_logging_config,
    request_id_context,
)


def _record(level=logging.INFO, msg="Test message", **extra):
    record = logging.LogRecord(
        name="ielts_mock.test",
        level=level,
        pathname="test.py",
        lineno=10,
        msg=msg,
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestJSONFormatter:
    """Tests for the JSONFormatter class."""

    def test_basic_log_entry(self):
        entry = json.loads(JSONFormatter().format(_record()))

        assert "timestamp" in entry
        assert entry["level"] == "INFO"
        assert entry["logger"] == "ielts_mock.test"
        assert entry["message"] == "Test message"

    def test_request_id_from_context(self):
        token = request_id_context.set("req-123")
        try:
            entry = json.loads(JSONFormatter().format(_record()))
        finally:
            request_id_context.reset(token)

        assert entry["request_id"] == "req-123"

    def test_no_request_id_when_not_set(self):
        entry = json.loads(JSONFormatter().format(_record()))
        assert "request_id" not in entry

    def test_session_fields_from_extra(self):
        record = _record(session_id=7, module_type="reading", unrelated="x")
        entry = json.loads(JSONFormatter().format(record))

        assert entry["session_id"] == 7
        assert entry["module_type"] == "reading"
        assert "unrelated" not in entry

    def test_source_location_for_errors(self):
        entry = json.loads(JSONFormatter().format(_record(level=logging.ERROR)))
        assert entry["source"] == "test.py:10"

    def test_no_source_location_for_info(self):
        entry = json.loads(JSONFormatter().format(_record()))
        assert "source" not in entry


class TestBuildLoggingConfig:
    def test_json_formatter_selected(self):
        config = build_logging_config(logging.INFO, use_json=True)
        assert config["handlers"]["console"]["formatter"] == "json"

    def test_plain_formatter_selected(self):
        config = build_logging_config(logging.DEBUG, use_json=False)
        assert config["handlers"]["console"]["formatter"] == "default"
        assert config["loggers"]["ielts_mock"]["level"] == logging.DEBUG
