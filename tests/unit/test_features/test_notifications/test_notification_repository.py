"""Unit tests for NotificationRepository against SQLite."""

from __future__ import annotations

from datetime import timedelta

import pytest
from sqlalchemy import func, select

from notification_service.features.notifications.models import Notification, NotificationStatus, utcnow
from notification_service.features.notifications.repository import StatusPatch, get_notification_repository


def _values(notification_id: str, recipient_id: str = "user-1", **overrides) -> dict:
    values = {
        "notification_id": notification_id,
        "recipient_id": recipient_id,
        "recipient_phone": None,
        "type": "disaster_alert",
        "priority": "high",
        "channels": ["sms", "push"],
        "message": "Disaster Alert: New disaster in your area",
        "data": {"disasterId": "d-1"},
        "status": "pending",
        "channel_status": {},
        "created_at": utcnow(),
    }
    values.update(overrides)
    return values


@pytest.fixture
def repository():
    return get_notification_repository()


@pytest.mark.unit
class TestNotificationRepository:
    """Test suite for the idempotent status store."""

    @pytest.mark.asyncio
    async def test_create_if_absent_is_idempotent(self, repository, db_session):
        """A second create with the same id is a no-op."""
        first = await repository.create_if_absent(db_session, _values("notif-1"))
        second = await repository.create_if_absent(db_session, _values("notif-1", message="different"))
        await db_session.commit()

        assert first is True
        assert second is False
        count = (await db_session.execute(select(func.count()).select_from(Notification))).scalar_one()
        assert count == 1
        row = await repository.get(db_session, "notif-1")
        assert row.message == "Disaster Alert: New disaster in your area"
        assert row.payload == {"disasterId": "d-1"}

    @pytest.mark.asyncio
    async def test_apply_final_status_only_once(self, repository, db_session):
        """A terminal row is never overwritten by a later final update."""
        await repository.create_if_absent(db_session, _values("notif-2"))
        now = utcnow()

        applied = await repository.apply_final_status(
            db_session,
            "notif-2",
            StatusPatch(
                status=NotificationStatus.SENT,
                channel_status={"sms": {"outcome": "sent", "reference": "SM1"}},
                sent_at=now,
            ),
        )
        overwritten = await repository.apply_final_status(
            db_session,
            "notif-2",
            StatusPatch(status=NotificationStatus.FAILED, channel_status={}, failed_at=now, failure_reason="late"),
        )
        await db_session.commit()

        assert applied is True
        assert overwritten is False
        row = await repository.get(db_session, "notif-2")
        await db_session.refresh(row)
        assert row.status == "sent"
        assert row.channel_status == {"sms": {"outcome": "sent", "reference": "SM1"}}
        assert row.failure_reason is None

    @pytest.mark.asyncio
    async def test_apply_final_status_missing_row(self, repository, db_session):
        """Finalizing an unknown id reports not applied."""
        applied = await repository.apply_final_status(
            db_session,
            "notif-missing",
            StatusPatch(status=NotificationStatus.FAILED, channel_status={}),
        )
        assert applied is False

    @pytest.mark.asyncio
    async def test_list_by_recipient_newest_first(self, repository, db_session):
        """Listing is scoped to the recipient, newest first, with a total."""
        base = utcnow()
        for offset, notification_id in enumerate(["notif-a", "notif-b", "notif-c"]):
            await repository.create_if_absent(
                db_session,
                _values(notification_id, created_at=base + timedelta(minutes=offset)),
            )
        await repository.create_if_absent(db_session, _values("notif-other", recipient_id="user-2"))
        await db_session.commit()

        page = await repository.list_by_recipient(db_session, "user-1", limit=2, offset=0)

        assert page.total == 3
        assert [row.id for row in page.items] == ["notif-c", "notif-b"]
        assert page.has_next is True

        rest = await repository.list_by_recipient(db_session, "user-1", limit=2, offset=2)
        assert [row.id for row in rest.items] == ["notif-a"]
        assert rest.has_next is False

    @pytest.mark.asyncio
    async def test_list_by_recipient_empty(self, repository, db_session):
        """An unknown recipient has no notifications."""
        page = await repository.list_by_recipient(db_session, "nobody")
        assert page.total == 0
        assert list(page.items) == []
