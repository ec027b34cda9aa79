"""Test doubles and helpers shared across the suite.

Usage:
    from tests.utils import FakeChannel, FakeResolver, make_message

    sms = FakeChannel("sms", delay=1.0)   # exceeds the channel timeout
    message = make_message({"event": "sos_request", "data": {...}})
"""

from __future__ import annotations

import asyncio
import json
from types import SimpleNamespace
from typing import Any
from unittest.mock import AsyncMock

from notification_service.features.notifications.channels.base import ChannelOutcome


class FakeChannel:
    """Configurable channel adapter that records every call.

    Args:
        name: Channel name reported by get_channel_name()
        outcome: Outcome returned by send (defaults to success)
        delay: Seconds to sleep before returning
        error: Exception raised instead of returning an outcome
    """

    def __init__(
        self,
        name: str,
        outcome: ChannelOutcome | None = None,
        delay: float = 0.0,
        error: Exception | None = None,
    ) -> None:
        self.name = name
        self.outcome = outcome or ChannelOutcome.sent(f"{name}-ref-1")
        self.delay = delay
        self.error = error
        self.calls: list[tuple[str, str, dict[str, Any] | None]] = []
        self.closed = False

    async def send(self, target: str, message: str, payload: dict[str, Any] | None) -> ChannelOutcome:
        self.calls.append((target, message, payload))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.outcome

    def get_channel_name(self) -> str:
        return self.name

    async def close(self) -> None:
        self.closed = True


class FakeResolver:
    """Recipient resolver returning fixed values and recording lookups."""

    def __init__(self, phone: str | None = "+15550001111", token: str | None = "fcm-token-1") -> None:
        self.phone = phone
        self.token = token
        self.phone_lookups: list[str] = []

    async def resolve_phone(self, recipient_id: str) -> str | None:
        self.phone_lookups.append(recipient_id)
        return self.phone

    async def resolve_push_token(self, recipient_id: str) -> str | None:
        return self.token


def make_message(
    body: Any,
    *,
    headers: dict[str, Any] | None = None,
    message_id: str | None = "msg-1",
) -> SimpleNamespace:
    """Queue message double with the attributes the consumer reads.

    Dict bodies are JSON-encoded; bytes are passed through.
    """
    raw = body if isinstance(body, bytes) else json.dumps(body).encode()
    return SimpleNamespace(
        body=raw,
        headers=headers or {},
        message_id=message_id,
        content_type="application/json",
        ack=AsyncMock(),
        nack=AsyncMock(),
    )
