"""Database session management (psycopg3 async driver, SQLite fallback)."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from notification_service.core.database import Base
from notification_service.core.settings import get_app_settings, get_db_settings
from notification_service.utils.retry import retry

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

logger = logging.getLogger(__name__)

db_settings = get_db_settings()
app_settings = get_app_settings()

engine = create_async_engine(
    db_settings.get_sqlalchemy_url(),
    **{**db_settings.sqlalchemy_engine_kwargs(), "echo": db_settings.echo or app_settings.debug},
)

AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


@asynccontextmanager
async def get_async_session() -> AsyncGenerator[AsyncSession]:
    """Get async database session.

    Yields:
        Database session that is automatically closed.
    """
    async with AsyncSessionLocal() as session:
        yield session


async def _ping() -> None:
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))


async def init_database() -> None:
    """Verify connectivity with retry, then optionally create tables.

    Uses retry settings from PostgresSettings:
    - startup_retry_attempts: Maximum number of connection attempts
    - startup_retry_delay: Initial delay between retries

    Raises:
        RetryError: If unable to connect after all retry attempts.
    """
    logger.info(
        "Initializing database connection with retry",
        extra={
            "max_attempts": db_settings.startup_retry_attempts,
            "initial_delay": db_settings.startup_retry_delay,
            "sqlite": db_settings.is_sqlite,
        },
    )

    await retry(
        max_attempts=db_settings.startup_retry_attempts,
        initial_delay=db_settings.startup_retry_delay,
        max_delay=30.0,
    )(_ping)()

    if db_settings.startup_create_tables:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    logger.info("Database connection established successfully")


async def check_database() -> bool:
    """Readiness probe: True when a trivial query succeeds."""
    try:
        await _ping()
    except Exception as e:
        logger.warning("Database readiness check failed", extra={"error": str(e)})
        return False
    return True


async def close_database() -> None:
    """Dispose the engine during application shutdown."""
    logger.info("Closing database connection")
    await engine.dispose()
    logger.info("Database connection closed successfully")
