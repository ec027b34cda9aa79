"""Unit tests for queue and dead-letter topology."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest
from faststream.rabbit import ExchangeType

from notification_service.core.settings import RabbitSettings
from notification_service.infra.messaging.exchanges import (
    DLQ_ROUTING_PATTERN,
    build_dlq_exchange,
    build_dlq_queue,
    build_notification_queue,
    build_retry_queue,
    create_queue_with_dlq,
    declare_retry_queue,
    setup_dead_letter_topology,
)


@pytest.fixture
def settings() -> RabbitSettings:
    return RabbitSettings(
        enabled=False,
        notification_queue="notifications.send",
        dlq_exchange="notifications.dlx",
        dlq_queue="notifications.send.dlq",
    )


@pytest.mark.unit
class TestExchanges:
    """Test suite for RabbitMQ topology builders."""

    def test_notification_queue_dead_letters_to_dlx(self, settings):
        """Rejected notification messages route to the dead-letter exchange."""
        queue = build_notification_queue(settings)

        assert queue.name == "notifications.send"
        assert queue.durable is True
        assert queue.arguments["x-dead-letter-exchange"] == "notifications.dlx"
        assert queue.arguments["x-dead-letter-routing-key"] == "dlq.notifications.send"

    def test_custom_dlq_routing_key(self):
        """An explicit routing key replaces the default."""
        queue = create_queue_with_dlq("alerts", "alerts.dlx", dlq_routing_key="dlq.custom")
        assert queue.arguments["x-dead-letter-routing-key"] == "dlq.custom"

    def test_dlq_exchange_and_queue(self, settings):
        """The DLQ is a durable topic exchange with a catch-all queue."""
        exchange = build_dlq_exchange(settings)
        queue = build_dlq_queue(settings)

        assert exchange.name == "notifications.dlx"
        assert exchange.type == ExchangeType.TOPIC
        assert exchange.durable is True
        assert queue.name == "notifications.send.dlq"
        assert queue.routing_key == DLQ_ROUTING_PATTERN

    @pytest.mark.asyncio
    async def test_setup_declares_and_binds(self, settings):
        """Topology setup declares both objects and binds them with dlq.#."""
        declared_exchange = object()
        declared_queue = AsyncMock()
        broker = AsyncMock()
        broker.declare_exchange.return_value = declared_exchange
        broker.declare_queue.return_value = declared_queue

        await setup_dead_letter_topology(broker, settings)

        assert broker.declare_exchange.await_args.args[0].name == "notifications.dlx"
        assert broker.declare_queue.await_args.args[0].name == "notifications.send.dlq"
        declared_queue.bind.assert_awaited_once_with(declared_exchange, routing_key="dlq.#")

    def test_retry_queue_expires_back_to_notification_queue(self, settings):
        """Expired retries are routed by the default exchange to the notification queue."""
        queue = build_retry_queue(settings)

        assert queue.name == "notifications.send.retry"
        assert queue.durable is True
        assert queue.arguments["x-dead-letter-exchange"] == ""
        assert queue.arguments["x-dead-letter-routing-key"] == "notifications.send"

    @pytest.mark.asyncio
    async def test_declare_retry_queue(self, settings):
        """The retry queue is declared on the broker."""
        broker = AsyncMock()

        await declare_retry_queue(broker, settings)

        assert broker.declare_queue.await_args.args[0].name == "notifications.send.retry"
