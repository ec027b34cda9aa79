"""Mock channel used outside production or without provider credentials."""

from __future__ import annotations

import time
from typing import Any

from notification_service.features.notifications.channels.base import ChannelOutcome
from notification_service.infra.logging import get_logger


class MockChannel:
    """Logs the message and reports success with a ``mock-<epoch-ms>`` reference."""

    def __init__(self, channel_name: str) -> None:
        self._channel_name = channel_name
        self._logger = get_logger(__name__, channel=channel_name)

    async def send(self, target: str, message: str, payload: dict[str, Any] | None) -> ChannelOutcome:
        reference = f"mock-{int(time.time() * 1000)}"
        self._logger.info(
            f"[MOCK {self._channel_name.upper()}] To: {target}, Message: {message}",
            extra={"target": target, "reference": reference},
        )
        return ChannelOutcome.sent(reference, response_time_ms=0)

    def get_channel_name(self) -> str:
        return self._channel_name

    async def close(self) -> None:
        return None
