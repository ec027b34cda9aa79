"""Pydantic schemas for notification dispatch and the HTTP API.

JSON field names are camelCase; bodies accept camelCase or snake_case.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

ChannelName = Literal["sms", "push", "whatsapp"]
NotificationType = Literal["sos_match", "sos_request", "disaster_alert", "match_accepted"]
Priority = Literal["high", "medium", "low"]
DEFAULT_CHANNELS: list[ChannelName] = ["sms", "push"]


class CamelModel(BaseModel):
    """Base model serializing field names as camelCase."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def _dedupe_channels(value: list[str]) -> list[str]:
    # Preserve request order, drop repeats
    return list(dict.fromkeys(value))


# ============================================================================
# Dispatch
# ============================================================================


class DispatchRequest(CamelModel):
    """One logical notification to dispatch.

    ``type`` is open here so queue events with unknown types still dispatch
    with the generic message; the HTTP API narrows it.
    """

    recipient_id: str = Field(..., min_length=1, max_length=100, description="Recipient user id")
    recipient_phone: str | None = Field(default=None, max_length=32, description="Phone for sms")
    channels: list[ChannelName] = Field(
        default_factory=lambda: list(DEFAULT_CHANNELS),
        min_length=1,
        description="Channels to attempt, deduplicated in order",
    )
    type: str = Field(..., min_length=1, max_length=50, description="Notification type")
    priority: Priority = Field(default="medium", description="high, medium, low")
    data: dict[str, Any] | None = Field(default=None, description="Opaque payload")
    notification_id: str | None = Field(
        default=None,
        max_length=64,
        description="Caller-supplied id; redelivering the same id is idempotent",
    )

    @field_validator("channels")
    @classmethod
    def _unique_channels(cls, value: list[str]) -> list[str]:
        return _dedupe_channels(value)


class ChannelStatusEntry(CamelModel):
    """Per-channel outcome as stored in ``channel_status``."""

    outcome: Literal["sent", "failed"]
    timestamp: datetime
    reference: str | None = None
    error: str | None = None
    error_kind: str | None = None


class DispatchResult(CamelModel):
    """Final state of a dispatched notification."""

    notification_id: str
    status: Literal["pending", "sent", "failed"]
    channels: dict[str, ChannelStatusEntry] = Field(default_factory=dict)
    sent_at: datetime | None = None


# ============================================================================
# HTTP API
# ============================================================================


class SendNotificationRequest(DispatchRequest):
    """Body of ``POST /notifications/send``."""

    type: NotificationType = Field(..., description="sos_match, sos_request, disaster_alert, match_accepted")


class BatchRecipient(CamelModel):
    recipient_id: str = Field(..., min_length=1, max_length=100)
    recipient_phone: str | None = Field(default=None, max_length=32)


class BatchNotificationRequest(CamelModel):
    """Body of ``POST /notifications/batch``: one message, many recipients."""

    recipients: list[BatchRecipient] = Field(..., min_length=1, max_length=1000)
    channels: list[ChannelName] = Field(default_factory=lambda: list(DEFAULT_CHANNELS), min_length=1)
    type: NotificationType
    priority: Priority = "medium"
    data: dict[str, Any] | None = None

    @field_validator("channels")
    @classmethod
    def _unique_channels(cls, value: list[str]) -> list[str]:
        return _dedupe_channels(value)


class BatchItemError(BaseModel):
    error: str


class BatchNotificationResponse(BaseModel):
    results: list[DispatchResult | BatchItemError]
    total: int


class NotificationStatusResponse(CamelModel):
    """Response of ``GET /notifications/{id}/status``."""

    notification_id: str
    status: str
    channels: dict[str, Any]
    created_at: datetime
    sent_at: datetime | None = None
    delivered_at: datetime | None = None


class NotificationSummary(CamelModel):
    notification_id: str
    type: str
    message: str
    status: str
    channels: dict[str, Any]
    created_at: datetime
    sent_at: datetime | None = None


class NotificationListResponse(BaseModel):
    """Response of ``GET /notifications/user/{userId}``."""

    notifications: list[NotificationSummary]
    total: int
