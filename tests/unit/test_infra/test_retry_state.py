"""Unit tests for header-based retry state."""

from __future__ import annotations

import pytest

from notification_service.infra.messaging.retry_state import (
    MAX_ERROR_LENGTH,
    RETRY_COUNT_HEADER,
    RETRY_FIRST_ATTEMPT_HEADER,
    RETRY_LAST_ERROR_HEADER,
    RETRY_LAST_ERROR_TYPE_HEADER,
    RetryState,
)


@pytest.mark.unit
class TestRetryState:
    """Test suite for RetryState."""

    def test_fresh_message_has_zero_count(self):
        """Messages without retry headers start at zero."""
        assert RetryState.from_headers(None).count == 0
        assert RetryState.from_headers({}).count == 0
        assert RetryState.from_headers({"x-other": "1"}).elapsed_ms == 0

    @pytest.mark.parametrize(("raw", "expected"), [("3", 3), (2, 2), ("abc", 0), ("-4", 0), (None, 0)])
    def test_count_parsing_is_tolerant(self, raw, expected):
        """Malformed or negative counts are treated as zero."""
        assert RetryState.from_headers({RETRY_COUNT_HEADER: raw}).count == expected

    def test_increment_records_error(self):
        """Incrementing bumps the count and records the failure."""
        state = RetryState().increment(TimeoutError("store timed out"))

        assert state.count == 1
        assert state.first_attempt_ms > 0
        assert state.last_error == "store timed out"
        assert state.last_error_type == "TimeoutError"

    def test_increment_keeps_first_attempt(self):
        """The first-attempt timestamp survives later increments."""
        first = RetryState(count=1, first_attempt_ms=1_700_000_000_000)
        assert first.increment(ValueError("x")).first_attempt_ms == 1_700_000_000_000

    def test_headers_are_strings(self):
        """Every header value is a string for AMQP."""
        headers = RetryState(count=2, first_attempt_ms=5, last_error="boom", last_error_type="RuntimeError").to_headers()

        assert headers == {
            RETRY_COUNT_HEADER: "2",
            RETRY_FIRST_ATTEMPT_HEADER: "5",
            RETRY_LAST_ERROR_HEADER: "boom",
            RETRY_LAST_ERROR_TYPE_HEADER: "RuntimeError",
        }
        assert RetryState.from_headers(headers).count == 2

    def test_long_errors_are_truncated(self):
        """Error text is capped to keep headers small."""
        state = RetryState().increment(RuntimeError("x" * (MAX_ERROR_LENGTH * 2)))
        assert len(state.to_headers()[RETRY_LAST_ERROR_HEADER]) == MAX_ERROR_LENGTH
