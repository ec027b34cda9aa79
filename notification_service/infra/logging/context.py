"""Context management for structured logging.

Provides automatic context injection into log records using contextvars,
so identifiers such as ``notification_id`` or ``event`` bound while a queue
message or API request is processed appear on every record logged from it.
Each asyncio task gets its own copy of the context.
"""

from __future__ import annotations

import logging
from contextvars import ContextVar
from typing import Any

_log_context: ContextVar[dict[str, Any]] = ContextVar("log_context", default={})


def set_log_context(**kwargs: Any) -> None:
    """Set logging context for the current async task.

    All subsequent log calls in this context include these fields.

    Args:
        **kwargs: Key-value pairs to add to logging context, e.g.
            ``notification_id``, ``recipient_id``, ``event``, ``message_id``.

    Example:
        ```python
        set_log_context(message_id=msg.message_id, event="match.created")
        logger.info("Dispatching notification")  # Includes both fields
        ```
    """
    current = _log_context.get().copy()
    current.update(kwargs)
    _log_context.set(current)


def get_log_context() -> dict[str, Any]:
    """Get a copy of the current logging context."""
    return _log_context.get().copy()


def clear_log_context() -> None:
    """Clear all logging context for the current async task.

    The queue consumer calls this before every message so fields from a
    previous delivery never leak into the next one.
    """
    _log_context.set({})


class ContextInjectingFilter(logging.Filter):
    """Logging filter that copies the ContextVar fields onto each LogRecord.

    Attached to the root QueueHandler so records from every module logger
    pass through it, making the fields available to JSONFormatter.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        """Inject context into log record.

        Args:
            record: The log record to enhance with context.

        Returns:
            True (always allow the record to be logged).
        """
        for key, value in _log_context.get().items():
            # Don't overwrite explicit extra= fields
            if not hasattr(record, key):
                setattr(record, key, value)
        return True


class ContextBoundLogger(logging.LoggerAdapter):
    """Logger adapter that binds context to a logger instance.

    Example:
        ```python
        log = ContextBoundLogger(logger, notification_id="notif-1")
        log.bind(channel="sms").warning("Channel failed")
        ```
    """

    def __init__(self, logger: logging.Logger, **context: Any) -> None:
        super().__init__(logger, context)

    def bind(self, **context: Any) -> ContextBoundLogger:
        """Create a new logger with additional bound context."""
        merged = {**self.extra, **context}
        return ContextBoundLogger(self.logger, **merged)

    def process(self, msg: str, kwargs: dict[str, Any]) -> tuple[str, dict[str, Any]]:
        """Merge bound context with any ``extra`` passed to the log call."""
        extra = kwargs.get("extra", {})
        kwargs["extra"] = {**self.extra, **extra}
        return msg, kwargs


def get_logger(name: str, **context: Any) -> ContextBoundLogger:
    """Get logger with bound context.

    Args:
        name: Logger name.
        **context: Context to add to all log messages.

    Returns:
        Logger adapter with context.
    """
    return ContextBoundLogger(logging.getLogger(name), **context)
