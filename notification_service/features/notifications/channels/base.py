"""Base protocol and outcome types for delivery channels."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Any, Protocol


class FailureKind(StrEnum):
    """Why a channel attempt failed."""

    CONFIGURATION_MISSING = "configuration_missing"
    TARGET_MISSING = "target_missing"
    PROVIDER_ERROR = "provider_error"
    TIMEOUT = "timeout"


@dataclass(frozen=True, slots=True)
class ChannelOutcome:
    """Result of one channel delivery attempt.

    Attributes:
        success: Whether the provider accepted the message
        reference: Provider message id (Twilio SID, FCM message name, mock id)
        failure_kind: Failure classification when success is False
        error_message: Error description if failed
        response_time_ms: Time taken for the attempt in milliseconds
    """

    success: bool
    reference: str | None = None
    failure_kind: FailureKind | None = None
    error_message: str | None = None
    response_time_ms: int | None = None

    @classmethod
    def sent(cls, reference: str | None, response_time_ms: int | None = None) -> ChannelOutcome:
        return cls(success=True, reference=reference, response_time_ms=response_time_ms)

    @classmethod
    def failed(
        cls,
        kind: FailureKind,
        error_message: str,
        response_time_ms: int | None = None,
    ) -> ChannelOutcome:
        return cls(
            success=False,
            failure_kind=kind,
            error_message=error_message,
            response_time_ms=response_time_ms,
        )


class ChannelAdapter(Protocol):
    """Protocol every delivery channel implements.

    Adapters report provider problems as failed outcomes instead of raising;
    the orchestrator still guards against unexpected exceptions.
    """

    async def send(self, target: str, message: str, payload: dict[str, Any] | None) -> ChannelOutcome:
        """Deliver ``message`` to ``target``.

        Args:
            target: Phone number for sms, recipient id for push
            message: Rendered notification text
            payload: Opaque notification data

        Returns:
            ChannelOutcome with status and provider reference
        """
        ...

    def get_channel_name(self) -> str:
        """Get the channel identifier (sms, push)."""
        ...

    async def close(self) -> None:
        """Release provider clients."""
        ...
