"""create notifications table

Revision ID: a1c4e7d2b903
Revises:
Create Date: 2026-10-18 09:00:00.000000+00:00

"""
from __future__ import annotations

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "a1c4e7d2b903"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Upgrade database schema."""
    op.create_table(
        "notifications",
        sa.Column(
            "notification_id",
            sa.String(length=64),
            nullable=False,
            comment="notif-<uuid>; the only idempotency key for writes",
        ),
        sa.Column("recipient_id", sa.String(length=100), nullable=False, comment="User the notification is addressed to"),
        sa.Column(
            "recipient_phone",
            sa.String(length=32),
            nullable=True,
            comment="Phone number used for sms, possibly resolved lazily",
        ),
        sa.Column(
            "type",
            sa.String(length=50),
            nullable=False,
            comment="sos_match, sos_request, disaster_alert, match_accepted",
        ),
        sa.Column("priority", sa.String(length=10), nullable=False, comment="high, medium, low"),
        sa.Column("channels", sa.JSON(), nullable=False, comment="Requested channels in request order"),
        sa.Column("message", sa.Text(), nullable=False, comment="Rendered once at creation, never mutated"),
        sa.Column(
            "data",
            postgresql.JSONB(astext_type=sa.Text()).with_variant(sa.JSON(), "sqlite"),
            nullable=True,
            comment="Opaque payload passed through to adapters",
        ),
        sa.Column("status", sa.String(length=20), nullable=False, comment="pending, sent, failed"),
        sa.Column("channel_status", sa.JSON(), nullable=False, comment="Per-channel outcome keyed by channel name"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("sent_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "delivered_at",
            sa.DateTime(timezone=True),
            nullable=True,
            comment="Reserved for provider delivery receipts",
        ),
        sa.Column("failed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("failure_reason", sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint("notification_id", name=op.f("pk_notifications")),
    )
    op.create_index(op.f("ix_notifications_recipient_id"), "notifications", ["recipient_id"], unique=False)
    op.create_index(op.f("ix_notifications_type"), "notifications", ["type"], unique=False)
    op.create_index(op.f("ix_notifications_status"), "notifications", ["status"], unique=False)
    op.create_index(op.f("ix_notifications_created_at"), "notifications", ["created_at"], unique=False)


def downgrade() -> None:
    """Downgrade database schema."""
    op.drop_index(op.f("ix_notifications_created_at"), table_name="notifications")
    op.drop_index(op.f("ix_notifications_status"), table_name="notifications")
    op.drop_index(op.f("ix_notifications_type"), table_name="notifications")
    op.drop_index(op.f("ix_notifications_recipient_id"), table_name="notifications")
    op.drop_table("notifications")
