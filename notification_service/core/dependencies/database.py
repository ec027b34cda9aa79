"""Database dependency for FastAPI route handlers.

Route handlers take a request-scoped session with ``Depends(get_db_session)``.
Code outside a request (the queue consumer, the dispatcher) opens sessions
from ``AsyncSessionLocal`` or ``get_async_session()`` directly.
"""

from collections.abc import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession

from notification_service.infra.database import get_async_session


async def get_db_session() -> AsyncGenerator[AsyncSession]:
    """FastAPI dependency for a database session.

    Yields:
        Database session that is closed after the request.
    """
    async with get_async_session() as session:
        yield session
