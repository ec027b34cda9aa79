"""Unit tests for the notification subscriber wiring."""

from __future__ import annotations

import pytest

from notification_service.infra.messaging import handlers


@pytest.fixture(autouse=True)
def _reset_consumer():
    yield
    handlers.set_notification_consumer(None)


@pytest.mark.unit
class TestNotificationSubscriberWiring:
    """The lifespan installs the consumer the subscriber delegates to."""

    def test_consumer_starts_unset(self):
        """No consumer is installed until the app starts."""
        assert handlers.get_notification_consumer() is None

    def test_set_and_clear_consumer(self):
        """The installed consumer is returned until cleared."""
        consumer = object()
        handlers.set_notification_consumer(consumer)
        assert handlers.get_notification_consumer() is consumer

        handlers.set_notification_consumer(None)
        assert handlers.get_notification_consumer() is None

    def test_notification_queue_is_durable_with_dead_letter_args(self):
        """The declared queue routes rejected messages to the DLX."""
        queue = handlers.NOTIFICATION_QUEUE
        assert queue.name == handlers.rabbit_settings.notification_queue
        assert queue.durable is True
        assert queue.arguments["x-dead-letter-exchange"] == handlers.rabbit_settings.dlq_exchange
