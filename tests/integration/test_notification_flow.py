"""End-to-end flow: queue event -> dispatch -> stored status -> HTTP read."""

from __future__ import annotations

import httpx
import pytest

from notification_service.core.settings import RabbitSettings
from notification_service.features.notifications.consumer import (
    ConsumerDecision,
    NotificationConsumer,
    stable_notification_id,
)
from notification_service.features.notifications.events import EventMapper, SosServiceClient
from tests.utils import make_message


@pytest.fixture
def consumer(app) -> NotificationConsumer:
    def sos_handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200,
            json={"resourceType": "boat", "urgency": "critical", "location": {"latitude": 24.9, "longitude": 91.8}},
        )

    sos_client = SosServiceClient("http://sos-service", transport=httpx.MockTransport(sos_handler))
    return NotificationConsumer(
        app.state.dispatcher,
        EventMapper(sos_client, "https://app.rescuemesh.test"),
        RabbitSettings(enabled=False, max_retries=1, retry_initial_delay_ms=0),
    )


@pytest.mark.integration
class TestNotificationFlow:
    """Queue and HTTP paths share one status store."""

    @pytest.mark.asyncio
    async def test_match_event_visible_over_http(self, consumer, client, app):
        """A match.created message is dispatched once and readable over HTTP."""
        message = make_message(
            {"event": "match.created", "data": {"matchId": "m-1", "requestId": "req-1", "volunteerId": "vol-1"}},
            message_id="amqp-flow-1",
        )

        assert await consumer.process(message) is ConsumerDecision.ACK
        notification_id = stable_notification_id("amqp-flow-1")

        status = await client.get(f"/api/notifications/{notification_id}/status")
        assert status.status_code == 200
        assert status.json()["status"] == "sent"

        listing = await client.get("/api/notifications/user/vol-1")
        assert listing.json()["total"] == 1
        summary = listing.json()["notifications"][0]
        assert summary["type"] == "sos_match"
        assert summary["message"].startswith("Emergency Match: You have been matched to an emergency request. boat")

        sms_target, sms_text, payload = app.state.channels["sms"].calls[0]
        assert sms_target == "+15550001111"
        assert "Urgency: critical" in sms_text
        assert payload["actionUrl"] == "https://app.rescuemesh.test/requests/req-1"

    @pytest.mark.asyncio
    async def test_redelivered_event_is_not_resent(self, consumer, app):
        """The same AMQP message delivered twice sends once."""
        body = {"event": "disaster_alert", "data": {"recipientId": "user-9", "disasterId": "d-9"}}

        await consumer.process(make_message(body, message_id="amqp-flow-2"))
        await consumer.process(make_message(body, message_id="amqp-flow-2"))

        assert len(app.state.channels["push"].calls) == 1
        assert len(app.state.channels["sms"].calls) == 1
