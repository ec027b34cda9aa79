"""FastStream exchange and queue definitions with dead-letter routing.

The notification queue is declared with ``x-dead-letter-exchange`` so that
``nack(requeue=False)`` moves a message to the DLQ without any publish
from the consumer.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from faststream.rabbit import ExchangeType, RabbitExchange, RabbitQueue

if TYPE_CHECKING:
    from faststream.rabbit import RabbitBroker

    from notification_service.core.settings import RabbitSettings

DLQ_ROUTING_PATTERN = "dlq.#"


def build_dlq_exchange(settings: RabbitSettings) -> RabbitExchange:
    """Durable topic exchange receiving every dead-lettered message."""
    return RabbitExchange(
        name=settings.dlq_exchange,
        type=ExchangeType.TOPIC,
        durable=True,
        auto_delete=False,
    )


def create_queue_with_dlq(
    queue_name: str,
    dlq_exchange: str,
    dlq_routing_key: str | None = None,
    durable: bool = True,
    auto_delete: bool = False,
) -> RabbitQueue:
    """Create a RabbitQueue whose rejected messages go to ``dlq_exchange``.

    Args:
        queue_name: Queue name.
        dlq_exchange: Dead-letter exchange name.
        dlq_routing_key: Routing key for dead-lettered messages (defaults to ``dlq.{queue_name}``).
        durable: Whether the queue survives a broker restart.
        auto_delete: Whether the queue is deleted when its last consumer leaves.

    Example:
        >>> queue = create_queue_with_dlq("notifications.send", "notifications.dlx")
        >>> queue.arguments["x-dead-letter-routing-key"]
        'dlq.notifications.send'
    """
    if dlq_routing_key is None:
        dlq_routing_key = f"dlq.{queue_name}"

    return RabbitQueue(
        name=queue_name,
        durable=durable,
        auto_delete=auto_delete,
        arguments={
            "x-dead-letter-exchange": dlq_exchange,
            "x-dead-letter-routing-key": dlq_routing_key,
        },
    )


def build_notification_queue(settings: RabbitSettings) -> RabbitQueue:
    return create_queue_with_dlq(settings.notification_queue, settings.dlq_exchange)


def build_retry_queue(settings: RabbitSettings) -> RabbitQueue:
    """Delay queue for retries with a backoff.

    Nothing consumes it: each message carries a per-message ``expiration`` and,
    once expired, the default exchange routes it back to the notification queue.
    """
    return RabbitQueue(
        name=settings.retry_queue,
        durable=True,
        auto_delete=False,
        arguments={
            "x-dead-letter-exchange": "",
            "x-dead-letter-routing-key": settings.notification_queue,
        },
    )


def build_dlq_queue(settings: RabbitSettings) -> RabbitQueue:
    """Queue bound to the DLQ exchange with ``dlq.#``, kept for inspection and replay."""
    return RabbitQueue(
        name=settings.dlq_queue,
        durable=True,
        auto_delete=False,
        routing_key=DLQ_ROUTING_PATTERN,
    )


async def setup_dead_letter_topology(broker: RabbitBroker, settings: RabbitSettings) -> None:
    """Declare the DLQ exchange and queue and bind them.

    FastStream declares the notification queue when its subscriber starts;
    the DLQ has no subscriber, so it is declared here.
    """
    exchange = await broker.declare_exchange(build_dlq_exchange(settings))
    queue = await broker.declare_queue(build_dlq_queue(settings))
    await queue.bind(exchange, routing_key=DLQ_ROUTING_PATTERN)


async def declare_retry_queue(broker: RabbitBroker, settings: RabbitSettings) -> None:
    """Declare the TTL retry queue; like the DLQ it has no subscriber."""
    await broker.declare_queue(build_retry_queue(settings))
