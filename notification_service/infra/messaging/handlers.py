"""Queue subscribers.

The notification subscriber settles every message itself (ack, republish
or ``nack(requeue=False)``); FastStream only acks what the handler left
unsettled.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from notification_service.infra.messaging.broker import rabbit_settings, router
from notification_service.infra.messaging.exchanges import (
    build_notification_queue,
    declare_retry_queue,
    setup_dead_letter_topology,
)

if TYPE_CHECKING:
    from notification_service.features.notifications.consumer import NotificationConsumer

logger = logging.getLogger(__name__)

NOTIFICATION_QUEUE = build_notification_queue(rabbit_settings)

_consumer: NotificationConsumer | None = None


def set_notification_consumer(consumer: NotificationConsumer | None) -> None:
    """Install the consumer used by the subscriber (done by the app lifespan)."""
    global _consumer
    _consumer = consumer


def get_notification_consumer() -> NotificationConsumer | None:
    return _consumer


if router is not None:
    from faststream.rabbit.fastapi import RabbitMessage

    @router.after_startup
    async def declare_side_queues(app: Any) -> None:
        await setup_dead_letter_topology(router.broker, rabbit_settings)
        logger.info(
            "Dead-letter topology declared",
            extra={"exchange": rabbit_settings.dlq_exchange, "queue": rabbit_settings.dlq_queue},
        )
        await declare_retry_queue(router.broker, rabbit_settings)
        logger.info("Retry queue declared", extra={"queue": rabbit_settings.retry_queue})

    @router.subscriber(NOTIFICATION_QUEUE)
    async def handle_notification_message(message: RabbitMessage) -> None:
        """Dispatch one notification request from the queue."""
        if _consumer is None:
            # Lifespan has not wired the dispatcher yet
            logger.warning("Notification consumer not ready; requeueing message")
            await message.nack(requeue=True)
            return
        await _consumer.process(message)
