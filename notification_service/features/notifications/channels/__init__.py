"""Delivery channel adapters."""

from __future__ import annotations

from .base import ChannelAdapter, ChannelOutcome, FailureKind
from .mock import MockChannel
from .push import FirebasePushChannel, PushTokenLookup
from .registry import build_channel_registry
from .sms import TwilioSmsChannel

__all__ = [
    "ChannelAdapter",
    "ChannelOutcome",
    "FailureKind",
    "FirebasePushChannel",
    "MockChannel",
    "PushTokenLookup",
    "TwilioSmsChannel",
    "build_channel_registry",
]
