"""Status store for notifications.

Every write is one atomic statement keyed by the notification id:
- create_if_absent: INSERT ... ON CONFLICT (notification_id) DO NOTHING
- apply_final_status: UPDATE ... WHERE notification_id = :id AND status = 'pending'

Together they make redelivery of the same id harmless: a second create is a
no-op and a second final update never overwrites a terminal row.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy import select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert

from notification_service.core.database import BaseRepository, RepositoryError, SearchResult
from notification_service.features.notifications.models import Notification, NotificationStatus

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

_INSERTS = {"postgresql": pg_insert, "sqlite": sqlite_insert}


@dataclass(frozen=True, slots=True)
class StatusPatch:
    """Terminal state written once a dispatch completes."""

    status: NotificationStatus
    channel_status: dict[str, Any]
    sent_at: datetime | None = None
    failed_at: datetime | None = None
    failure_reason: str | None = None

    def as_values(self) -> dict[str, Any]:
        values = asdict(self)
        values["status"] = self.status.value
        return values


class NotificationRepository(BaseRepository[Notification]):
    """Repository for the ``notifications`` table."""

    __slots__ = ()

    async def create_if_absent(self, session: AsyncSession, values: dict[str, Any]) -> bool:
        """Insert a pending row unless one with the same id exists.

        Args:
            session: Database session (caller commits)
            values: Column values keyed by column name (``notification_id``, ``data``, ...)

        Returns:
            True if a row was inserted, False if the id already existed
        """
        dialect = session.get_bind().dialect.name
        insert = _INSERTS.get(dialect)
        if insert is None:
            msg = f"Unsupported dialect for idempotent insert: {dialect}"
            raise RepositoryError(msg, {"dialect": dialect})

        stmt = (
            insert(Notification.__table__)
            .values(**values)
            .on_conflict_do_nothing(index_elements=["notification_id"])
        )
        result = await session.execute(stmt)
        inserted = result.rowcount == 1
        self._lazy.debug(lambda: f"db.create_if_absent: {values['notification_id']} -> inserted={inserted}")
        return inserted

    async def apply_final_status(self, session: AsyncSession, notification_id: str, patch: StatusPatch) -> bool:
        """Move a pending row to its terminal state.

        Returns:
            True if the row was pending and is now terminal; False if it was
            already terminal (or does not exist)
        """
        table = Notification.__table__
        stmt = (
            update(table)
            .where(
                table.c.notification_id == notification_id,
                table.c.status == NotificationStatus.PENDING.value,
            )
            .values(**patch.as_values())
        )
        result = await session.execute(stmt)
        applied = result.rowcount == 1
        if not applied:
            self._logger.info(
                "Final status not applied; notification already terminal or missing",
                extra={"notification_id": notification_id, "operation": "db.apply_final_status"},
            )
        return applied

    async def list_by_recipient(
        self,
        session: AsyncSession,
        recipient_id: str,
        *,
        limit: int = 20,
        offset: int = 0,
    ) -> SearchResult[Notification]:
        """Notifications for one recipient, newest first."""
        stmt = (
            select(Notification)
            .where(Notification.recipient_id == recipient_id)
            .order_by(Notification.created_at.desc(), Notification.id.desc())
        )
        return await self.search(session, stmt, limit=limit, offset=offset)


_notification_repository: NotificationRepository | None = None


def get_notification_repository() -> NotificationRepository:
    """Get the NotificationRepository singleton."""
    global _notification_repository
    if _notification_repository is None:
        _notification_repository = NotificationRepository(Notification)
    return _notification_repository
