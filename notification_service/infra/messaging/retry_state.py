"""Redelivery state carried in AMQP headers.

The count survives republishing, so a message that keeps failing is
dead-lettered after a bounded number of attempts even across restarts.
All header values are strings for AMQP compatibility.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any

RETRY_COUNT_HEADER = "x-retry-count"
RETRY_FIRST_ATTEMPT_HEADER = "x-retry-first-attempt-ms"
RETRY_LAST_ERROR_HEADER = "x-retry-last-error"
RETRY_LAST_ERROR_TYPE_HEADER = "x-retry-last-error-type"

# Keeps headers well under broker frame limits
MAX_ERROR_LENGTH = 500


@dataclass(frozen=True, slots=True)
class RetryState:
    """Immutable redelivery history of one message.

    Attributes:
        count: Redeliveries already made.
        first_attempt_ms: Unix timestamp (ms) of the first failure.
        last_error: Truncated message of the last failure.
        last_error_type: Exception class name of the last failure.

    Example:
        state = RetryState.from_headers(msg.headers)
        if state.count >= max_retries:
            await msg.nack(requeue=False)
        else:
            headers = {**msg.headers, **state.increment(exc).to_headers()}
    """

    count: int = 0
    first_attempt_ms: int = 0
    last_error: str = ""
    last_error_type: str = ""

    @classmethod
    def from_headers(cls, headers: dict[str, Any] | None) -> RetryState:
        """Read state from headers, tolerating missing or malformed values."""
        if not headers:
            return cls()

        return cls(
            count=max(_safe_int(headers.get(RETRY_COUNT_HEADER)), 0),
            first_attempt_ms=_safe_int(headers.get(RETRY_FIRST_ATTEMPT_HEADER)),
            last_error=str(headers.get(RETRY_LAST_ERROR_HEADER, ""))[:MAX_ERROR_LENGTH],
            last_error_type=str(headers.get(RETRY_LAST_ERROR_TYPE_HEADER, "")),
        )

    def to_headers(self) -> dict[str, str]:
        return {
            RETRY_COUNT_HEADER: str(self.count),
            RETRY_FIRST_ATTEMPT_HEADER: str(self.first_attempt_ms),
            RETRY_LAST_ERROR_HEADER: self.last_error[:MAX_ERROR_LENGTH],
            RETRY_LAST_ERROR_TYPE_HEADER: self.last_error_type,
        }

    def increment(self, error: BaseException) -> RetryState:
        """Return the state for the next redelivery after ``error``."""
        return RetryState(
            count=self.count + 1,
            first_attempt_ms=self.first_attempt_ms or _current_time_ms(),
            last_error=str(error)[:MAX_ERROR_LENGTH],
            last_error_type=type(error).__name__,
        )

    @property
    def elapsed_ms(self) -> int:
        if not self.first_attempt_ms:
            return 0
        return _current_time_ms() - self.first_attempt_ms


def _safe_int(value: Any, default: int = 0) -> int:
    if value is None:
        return default
    try:
        return int(value)
    except (ValueError, TypeError):
        return default


def _current_time_ms() -> int:
    return int(time.time() * 1000)


__all__ = [
    "RETRY_COUNT_HEADER",
    "RETRY_FIRST_ATTEMPT_HEADER",
    "RETRY_LAST_ERROR_HEADER",
    "RETRY_LAST_ERROR_TYPE_HEADER",
    "RetryState",
]
