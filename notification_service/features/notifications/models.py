"""SQLAlchemy model for the notifications table."""

from __future__ import annotations

import uuid
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

from sqlalchemy import JSON, DateTime, String, Text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from notification_service.core.database import Base

# JSONB on PostgreSQL, plain JSON elsewhere (SQLite in tests)
JSONType = JSONB().with_variant(JSON(), "sqlite")


class NotificationStatus(StrEnum):
    """Overall delivery status; moves pending -> sent|failed exactly once."""

    PENDING = "pending"
    SENT = "sent"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self is not NotificationStatus.PENDING


def new_notification_id() -> str:
    """Mint a fresh notification id (``notif-<uuid4>``)."""
    return f"notif-{uuid.uuid4()}"


def utcnow() -> datetime:
    return datetime.now(UTC)


class Notification(Base):
    """One logical notification and its aggregated delivery state.

    Indexes:
        - recipient_id, status, type, created_at
    """

    __tablename__ = "notifications"

    id: Mapped[str] = mapped_column(
        "notification_id",
        String(64),
        primary_key=True,
        comment="notif-<uuid>; the only idempotency key for writes",
    )
    recipient_id: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        index=True,
        comment="User the notification is addressed to",
    )
    recipient_phone: Mapped[str | None] = mapped_column(
        String(32),
        nullable=True,
        comment="Phone number used for sms, possibly resolved lazily",
    )
    type: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        index=True,
        comment="sos_match, sos_request, disaster_alert, match_accepted",
    )
    priority: Mapped[str] = mapped_column(
        String(10),
        nullable=False,
        default="medium",
        comment="high, medium, low",
    )
    channels: Mapped[list[str]] = mapped_column(
        JSON,
        nullable=False,
        comment="Requested channels in request order",
    )
    message: Mapped[str] = mapped_column(
        Text(),
        nullable=False,
        comment="Rendered once at creation, never mutated",
    )
    payload: Mapped[dict[str, Any] | None] = mapped_column(
        "data",
        JSONType,
        nullable=True,
        comment="Opaque payload passed through to adapters",
    )
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=NotificationStatus.PENDING.value,
        index=True,
        comment="pending, sent, failed",
    )
    channel_status: Mapped[dict[str, Any]] = mapped_column(
        JSON,
        nullable=False,
        default=dict,
        comment="Per-channel outcome keyed by channel name",
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        index=True,
    )
    sent_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    delivered_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        comment="Reserved for provider delivery receipts",
    )
    failed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    failure_reason: Mapped[str | None] = mapped_column(Text(), nullable=True)

    def __repr__(self) -> str:
        return f"Notification(id={self.id!r}, recipient_id={self.recipient_id!r}, status={self.status!r})"
