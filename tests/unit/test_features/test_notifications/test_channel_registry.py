"""Unit tests for channel registry selection."""

from __future__ import annotations

import pytest

from notification_service.core.settings import AppSettings, ChannelSettings, DispatchSettings
from notification_service.features.notifications.channels import (
    FirebasePushChannel,
    MockChannel,
    TwilioSmsChannel,
    build_channel_registry,
)
from tests.utils import FakeResolver

LIVE_CREDENTIALS = {
    "twilio_account_sid": "AC123",
    "twilio_auth_token": "token",
    "twilio_phone_number": "+15550000000",
    "firebase_project_id": "rescuemesh",
    "firebase_private_key": "key",
    "firebase_client_email": "svc@rescuemesh.iam.gserviceaccount.com",
}


def _build(environment: str = "development", **channel_fields):
    return build_channel_registry(
        AppSettings(environment=environment),
        ChannelSettings(**channel_fields),
        DispatchSettings(),
        token_lookup=FakeResolver(),
    )


@pytest.mark.unit
class TestBuildChannelRegistry:
    """Test suite for provider selection at startup."""

    def test_auto_mode_outside_production_uses_mocks(self):
        """Development always uses mock adapters, even with credentials."""
        registry = _build(provider_mode="auto", **LIVE_CREDENTIALS)

        assert set(registry) == {"sms", "push"}
        assert all(isinstance(adapter, MockChannel) for adapter in registry.values())

    def test_auto_mode_in_production_with_credentials_is_live(self):
        """Production with credentials uses Twilio and Firebase."""
        registry = _build(environment="production", provider_mode="auto", **LIVE_CREDENTIALS)

        assert isinstance(registry["sms"], TwilioSmsChannel)
        assert isinstance(registry["push"], FirebasePushChannel)

    def test_auto_mode_in_production_without_credentials_is_mock(self):
        """Missing credentials fall back to mocks per channel."""
        registry = _build(environment="production", provider_mode="auto", twilio_account_sid="AC123")

        assert isinstance(registry["sms"], MockChannel)
        assert isinstance(registry["push"], MockChannel)

    def test_mock_mode_overrides_production(self):
        """provider_mode=mock never builds live adapters."""
        registry = _build(environment="production", provider_mode="mock", **LIVE_CREDENTIALS)

        assert all(isinstance(adapter, MockChannel) for adapter in registry.values())

    def test_live_mode_without_credentials_is_live(self):
        """provider_mode=live builds live adapters that report missing configuration."""
        registry = _build(provider_mode="live")

        assert isinstance(registry["sms"], TwilioSmsChannel)
        assert isinstance(registry["push"], FirebasePushChannel)

    def test_disabled_channels_are_absent(self):
        """Channels turned off by flag are not registered."""
        registry = _build(provider_mode="mock", sms_enabled=False, whatsapp_enabled=True)

        assert set(registry) == {"push"}

    @pytest.mark.asyncio
    async def test_mock_channel_reports_success(self):
        """Mock adapters always succeed with a mock reference."""
        channel = MockChannel("sms")

        outcome = await channel.send("+15550000000", "hello", None)

        assert outcome.success is True
        assert outcome.reference.startswith("mock-")
        assert channel.get_channel_name() == "sms"
