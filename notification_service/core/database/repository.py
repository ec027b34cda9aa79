"""Minimal generic repository for SQLAlchemy models.

Provides basic read operations with explicit session passing.
For statements the base class does not cover, subclasses use the session
directly.

Example:
    class NotificationRepository(BaseRepository[Notification]):
        async def list_for(self, session: AsyncSession, recipient_id: str):
            stmt = select(Notification).where(Notification.recipient_id == recipient_id)
            return await self.search(session, stmt, limit=20)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from sqlalchemy import Select, func, select

from notification_service.infra.logging import get_lazy_logger

if TYPE_CHECKING:
    from collections.abc import Sequence

    from sqlalchemy.ext.asyncio import AsyncSession


@dataclass(slots=True, frozen=True)
class SearchResult[T]:
    """Paginated search result container.

    Attributes:
        items: List of items for current page
        total: Total count across all pages
        limit: Page size
        offset: Current offset
    """

    items: Sequence[T]
    total: int
    limit: int
    offset: int

    @property
    def has_next(self) -> bool:
        """Whether there are more pages after current."""
        return self.offset + len(self.items) < self.total


class BaseRepository[T]:
    """Minimal generic repository.

    Provides:
        - get(session, id) -> T | None
        - search(session, statement, limit, offset) -> SearchResult[T]

    Session is always explicit - no hidden state.
    """

    __slots__ = ("model", "_lazy")

    def __init__(self, model: type[T]) -> None:
        """Initialize repository with model class.

        Args:
            model: SQLAlchemy model class
        """
        self.model = model
        # DEBUG only; zero overhead when disabled
        self._lazy = get_lazy_logger(f"repository.{model.__name__}")

    async def get(self, session: AsyncSession, id: Any) -> T | None:  # noqa: A002
        """Get entity by primary key.

        Args:
            session: Database session
            id: Primary key value

        Returns:
            Entity if found, None otherwise
        """
        instance = await session.get(self.model, id)
        self._lazy.debug(
            lambda: f"db.get: {self.model.__name__}({id}) -> {'found' if instance else 'not found'}"
        )
        return instance

    async def search(
        self,
        session: AsyncSession,
        statement: Select[tuple[T]],
        *,
        limit: int = 50,
        offset: int = 0,
    ) -> SearchResult[T]:
        """Execute paginated search with total count.

        Args:
            session: Database session
            statement: SQLAlchemy select statement (filters and ordering applied)
            limit: Page size
            offset: Results to skip

        Returns:
            SearchResult with items and total count
        """
        count_stmt = select(func.count()).select_from(statement.order_by(None).subquery())
        total = (await session.execute(count_stmt)).scalar_one()

        result = await session.execute(statement.limit(limit).offset(offset))
        items = result.scalars().all()

        self._lazy.debug(
            lambda: f"db.search: {self.model.__name__}(limit={limit}, offset={offset}) -> {len(items)}/{total} items"
        )
        return SearchResult(items=items, total=total, limit=limit, offset=offset)
