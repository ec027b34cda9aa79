"""Channel adapter selection, performed once at startup."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from notification_service.features.notifications.channels.mock import MockChannel
from notification_service.features.notifications.channels.push import FirebasePushChannel
from notification_service.features.notifications.channels.sms import TwilioSmsChannel

if TYPE_CHECKING:
    from notification_service.core.settings import AppSettings, ChannelSettings, DispatchSettings
    from notification_service.features.notifications.channels.base import ChannelAdapter
    from notification_service.features.notifications.channels.push import PushTokenLookup

logger = logging.getLogger(__name__)


def _use_live(mode: str, is_production: bool, configured: bool) -> bool:
    if mode == "mock":
        return False
    if mode == "live":
        return True
    return is_production and configured


def build_channel_registry(
    app_settings: AppSettings,
    channel_settings: ChannelSettings,
    dispatch_settings: DispatchSettings,
    token_lookup: PushTokenLookup,
) -> dict[str, ChannelAdapter]:
    """Build the channel-name -> adapter mapping.

    Channels disabled by flag are absent, so the orchestrator never attempts
    them. whatsapp has no provider and is never registered.
    """
    registry: dict[str, ChannelAdapter] = {}

    if channel_settings.sms_enabled:
        if _use_live(channel_settings.provider_mode, app_settings.is_production, channel_settings.twilio_configured):
            registry["sms"] = TwilioSmsChannel(channel_settings, timeout=dispatch_settings.channel_timeout)
        else:
            registry["sms"] = MockChannel("sms")

    if channel_settings.push_enabled:
        if _use_live(channel_settings.provider_mode, app_settings.is_production, channel_settings.firebase_configured):
            registry["push"] = FirebasePushChannel(channel_settings, token_lookup)
        else:
            registry["push"] = MockChannel("push")

    if channel_settings.whatsapp_enabled:
        logger.warning("whatsapp is enabled but no provider is available; channel will be skipped")

    logger.info(
        "Channel registry built",
        extra={
            "channels": {name: type(adapter).__name__ for name, adapter in registry.items()},
            "environment": app_settings.environment,
        },
    )
    return registry
