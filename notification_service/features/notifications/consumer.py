"""RabbitMQ consumer: one queue message, one dispatch, one broker decision.

Decisions:
    ack          dispatch completed, whatever the channel outcomes
    requeue      dispatch raised; republished with ``x-retry-count + 1``,
                 through the TTL retry queue when a backoff delay applies
    dead_letter  body unusable, or retries exhausted; ``nack(requeue=False)``
                 lets the queue's dead-letter exchange route it to the DLQ
"""

from __future__ import annotations

import json
import logging
import uuid
from enum import StrEnum
from typing import TYPE_CHECKING, Any, Protocol

from notification_service.features.notifications.events import (
    InvalidEventError,
    parse_event,
)
from notification_service.features.notifications.metrics import notification_consumer_messages_total
from notification_service.infra.logging import clear_log_context, set_log_context
from notification_service.infra.messaging.retry_state import RetryState

if TYPE_CHECKING:
    from collections.abc import Mapping

    from notification_service.core.settings import RabbitSettings
    from notification_service.features.notifications.dispatcher import NotificationDispatcher
    from notification_service.features.notifications.events import EventMapper
    from notification_service.features.notifications.schemas import DispatchResult

logger = logging.getLogger(__name__)

NOTIFICATION_ID_NAMESPACE = uuid.uuid5(uuid.NAMESPACE_URL, "rescuemesh:notification-service")
KNOWN_EVENTS = frozenset({"match.created", "sos_request", "disaster_alert", "match_accepted"})


class ConsumerDecision(StrEnum):
    ACK = "ack"
    REQUEUE = "requeue"
    DEAD_LETTER = "dead_letter"


class IncomingMessage(Protocol):
    """The parts of ``faststream.rabbit.RabbitMessage`` the consumer uses."""

    body: bytes
    headers: Mapping[str, Any] | None
    message_id: str | None
    content_type: str | None

    async def ack(self) -> None: ...

    async def nack(self, requeue: bool = True) -> None: ...


class Republisher(Protocol):
    async def publish(self, message: Any, queue: str = "", **kwargs: Any) -> Any: ...


def stable_notification_id(message_id: str | None) -> str | None:
    """Deterministic notification id for an AMQP message id.

    A redelivered message keeps its message id, so every delivery maps to
    the same status row.
    """
    if not message_id:
        return None
    return f"notif-{uuid.uuid5(NOTIFICATION_ID_NAMESPACE, message_id)}"


def decode_body(raw: Any) -> Any:
    """Decode a raw message body to JSON.

    Raises:
        InvalidEventError: If the body is not valid UTF-8 JSON.
    """
    if isinstance(raw, dict):
        return raw
    try:
        return json.loads(raw)
    except (UnicodeDecodeError, json.JSONDecodeError, TypeError) as exc:
        msg = f"Message body is not valid JSON: {exc}"
        raise InvalidEventError(msg) from exc


class NotificationConsumer:
    """Processes notification queue messages with bounded redelivery."""

    def __init__(
        self,
        dispatcher: NotificationDispatcher,
        mapper: EventMapper,
        settings: RabbitSettings,
        publisher: Republisher | None = None,
    ) -> None:
        self._dispatcher = dispatcher
        self._mapper = mapper
        self._settings = settings
        self._publisher = publisher

    async def handle(self, body: Any, message_id: str | None = None) -> DispatchResult:
        """Map a decoded body to a request and dispatch it.

        Raises:
            InvalidEventError: If the body is not a usable event.
            RepositoryError: If the status store fails.
        """
        event = parse_event(body)
        set_log_context(event=event.event)

        explicit_id = event.data.get("notificationId")
        notification_id = explicit_id if isinstance(explicit_id, str) and explicit_id else None
        request = await self._mapper.to_request(
            event,
            notification_id=notification_id or stable_notification_id(message_id),
        )
        set_log_context(notification_id=request.notification_id, recipient_id=request.recipient_id)
        return await self._dispatcher.dispatch(request)

    async def process(self, message: IncomingMessage) -> ConsumerDecision:
        """Handle one delivery and settle it with the broker."""
        headers = dict(message.headers or {})
        retry_state = RetryState.from_headers(headers)
        # Minted once and republished with the message, so retries keep one notification id
        message_id = message.message_id or uuid.uuid4().hex

        clear_log_context()
        set_log_context(message_id=message_id, retry_count=retry_state.count)

        event_name = "unknown"
        try:
            body = decode_body(message.body)
            if isinstance(body, dict) and isinstance(body.get("event"), str):
                event_name = body["event"] if body["event"] in KNOWN_EVENTS else "other"
            result = await self.handle(body, message_id)
        except InvalidEventError as exc:
            logger.warning(f"Dead-lettering unusable message: {exc}", extra={"event": event_name})
            await message.nack(requeue=False)
            decision = ConsumerDecision.DEAD_LETTER
        except Exception as exc:
            decision = await self._handle_failure(message, message_id, headers, retry_state, exc)
        else:
            await message.ack()
            decision = ConsumerDecision.ACK
            logger.info(
                "Notification message processed",
                extra={"notification_id": result.notification_id, "status": result.status},
            )
        finally:
            clear_log_context()

        notification_consumer_messages_total.labels(event=event_name, decision=decision.value).inc()
        return decision

    async def _handle_failure(
        self,
        message: IncomingMessage,
        message_id: str,
        headers: dict[str, Any],
        retry_state: RetryState,
        exc: Exception,
    ) -> ConsumerDecision:
        max_retries = self._settings.max_retries
        if retry_state.count >= max_retries:
            logger.error(
                f"Max retries ({max_retries}) exceeded, dead-lettering: {exc!r}",
                exc_info=exc,
                extra={"retry_elapsed_ms": retry_state.elapsed_ms},
            )
            await message.nack(requeue=False)
            return ConsumerDecision.DEAD_LETTER

        if self._publisher is None:
            # No way to carry the count forward; let the broker redeliver as-is
            logger.warning(f"Dispatch failed, requeueing without retry headers: {exc!r}")
            await message.nack(requeue=True)
            return ConsumerDecision.REQUEUE

        delay_ms = self._settings.retry_delay_ms(retry_state.count)
        new_state = retry_state.increment(exc)
        logger.warning(
            f"Dispatch failed, scheduling retry {new_state.count}/{max_retries} in {delay_ms} ms: {exc!r}",
            extra={"error_type": new_state.last_error_type},
        )

        # The retry queue holds the message for its TTL, then dead-letters it
        # back onto the notification queue; the prefetch slot is freed now.
        if delay_ms > 0:
            route: dict[str, Any] = {"queue": self._settings.retry_queue, "expiration": delay_ms / 1000.0}
        else:
            route = {"queue": self._settings.notification_queue}

        try:
            await self._publisher.publish(
                message.body,
                headers={**headers, **new_state.to_headers()},
                message_id=message_id,
                content_type=message.content_type,
                persist=True,
                **route,
            )
        except Exception:
            logger.exception("Failed to republish message for retry; dead-lettering")
            await message.nack(requeue=False)
            return ConsumerDecision.DEAD_LETTER

        await message.ack()
        return ConsumerDecision.REQUEUE
