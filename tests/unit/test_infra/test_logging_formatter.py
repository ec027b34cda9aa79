"""Unit tests for JSON logging and context injection."""

from __future__ import annotations

import json
import logging
import sys

import pytest

from notification_service.infra.logging import (
    ContextInjectingFilter,
    JSONFormatter,
    clear_log_context,
    get_log_context,
    get_logger,
    set_log_context,
)


def _record(message: str = "Notification sent", **extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="notification_service.test",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg=message,
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


@pytest.fixture(autouse=True)
def _clean_context():
    clear_log_context()
    yield
    clear_log_context()


@pytest.mark.unit
class TestJSONFormatter:
    """Test suite for the JSONL formatter."""

    def test_formats_one_json_line(self):
        """Core fields, static fields and extras land in one JSON object."""
        formatter = JSONFormatter(static={"service": "notification-service"})

        line = formatter.format(_record(notification_id="notif-1"))
        data = json.loads(line)

        assert "\n" not in line
        assert data["level"] == "INFO"
        assert data["logger"] == "notification_service.test"
        assert data["message"] == "Notification sent"
        assert data["service"] == "notification-service"
        assert data["notification_id"] == "notif-1"
        assert data["timestamp"].endswith("Z")

    def test_exception_is_single_line(self):
        """Tracebacks are escaped to keep one record per line."""
        formatter = JSONFormatter()
        try:
            raise RuntimeError("store down")
        except RuntimeError:
            record = _record()
            record.exc_info = sys.exc_info()

        line = formatter.format(record)

        assert "\n" not in line
        assert "RuntimeError: store down" in json.loads(line)["exception"]

    def test_non_serializable_extras_use_str(self):
        """Unknown objects are rendered with str()."""
        formatter = JSONFormatter()

        class Opaque:
            def __str__(self) -> str:
                return "opaque"

        assert json.loads(formatter.format(_record(thing=Opaque())))["thing"] == "opaque"


@pytest.mark.unit
class TestLogContext:
    """Test suite for ContextVar-backed log context."""

    def test_filter_injects_context(self):
        """Context fields are copied onto records without clobbering extras."""
        set_log_context(message_id="amqp-1", event="sos_request")
        record = _record(event="explicit")

        assert ContextInjectingFilter().filter(record) is True
        assert record.message_id == "amqp-1"
        assert record.event == "explicit"

    def test_clear_context(self):
        """Clearing removes every field."""
        set_log_context(notification_id="notif-1")
        assert get_log_context() == {"notification_id": "notif-1"}

        clear_log_context()
        assert get_log_context() == {}

    def test_bound_logger_merges_context(self, caplog):
        """Bound fields and per-call extras both reach the record."""
        log = get_logger("notification_service.test.bound", notification_id="notif-9").bind(channel="sms")

        with caplog.at_level(logging.INFO, logger="notification_service.test.bound"):
            log.info("Channel attempted", extra={"outcome": "sent"})

        record = caplog.records[-1]
        assert record.notification_id == "notif-9"
        assert record.channel == "sms"
        assert record.outcome == "sent"
