"""Pytest configuration and shared fixtures.

Organization:
    - Environment: settings that keep tests off external infrastructure
    - Database Fixtures: in-memory SQLite engine and session factory
    - Dispatch Fixtures: fake channels, fake resolver, dispatcher
    - Application Fixtures: FastAPI app and HTTP client
"""

from __future__ import annotations

import os
from collections.abc import AsyncGenerator
from typing import Any

# Must run before notification_service modules read their settings
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("DB_STARTUP_CREATE_TABLES", "true")
os.environ.setdefault("RABBIT_ENABLED", "false")
os.environ.setdefault("APP_ENVIRONMENT", "test")
os.environ.setdefault("PROVIDER_MODE", "mock")
os.environ.setdefault("LOG_JSON", "false")

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from notification_service.core.database import Base
from notification_service.core.settings import DispatchSettings
from notification_service.features.notifications.channels.base import ChannelOutcome, FailureKind
from tests.utils import FakeChannel, FakeResolver


# ============================================================================
# Database Fixtures
# ============================================================================


@pytest.fixture
async def db_engine() -> AsyncGenerator[AsyncEngine]:
    """In-memory SQLite engine with the notifications table created.

    StaticPool keeps a single connection so every session sees the same
    in-memory database.
    """
    import notification_service.features.notifications.models  # noqa: F401

    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(db_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest.fixture
async def db_session(session_factory: async_sessionmaker[AsyncSession]) -> AsyncGenerator[AsyncSession]:
    async with session_factory() as session:
        yield session


# ============================================================================
# Dispatch Fixtures
# ============================================================================


@pytest.fixture
def dispatch_settings() -> DispatchSettings:
    """Short time bounds so timeout paths finish quickly."""
    return DispatchSettings(channel_timeout=0.2, resolver_timeout=0.2, store_timeout=1.0, lookup_timeout=0.2)


@pytest.fixture
def fake_resolver() -> FakeResolver:
    return FakeResolver()


@pytest.fixture
def failed_outcome() -> ChannelOutcome:
    return ChannelOutcome.failed(FailureKind.PROVIDER_ERROR, "provider rejected message")


@pytest.fixture
def make_dispatcher(session_factory, fake_resolver, dispatch_settings):
    """Factory building a NotificationDispatcher over fake channels."""
    from notification_service.features.notifications.dispatcher import NotificationDispatcher

    def _make(channels: dict[str, Any], resolver: Any = None, **kwargs: Any) -> NotificationDispatcher:
        return NotificationDispatcher(
            channels,
            resolver or fake_resolver,
            session_factory,
            dispatch_settings,
            **kwargs,
        )

    return _make


# ============================================================================
# Application Fixtures
# ============================================================================


@pytest.fixture
def app(session_factory, make_dispatcher):
    """FastAPI application wired to the in-memory store and fake channels.

    The lifespan is not run: the dispatcher is placed on ``app.state`` and
    the session dependency is overridden.
    """
    from notification_service.app.main import create_app
    from notification_service.core.dependencies import get_db_session

    application = create_app()
    application.state.channels = {"sms": FakeChannel("sms"), "push": FakeChannel("push")}
    application.state.dispatcher = make_dispatcher(application.state.channels)

    async def _session_override() -> AsyncGenerator[AsyncSession]:
        async with session_factory() as session:
            yield session

    application.dependency_overrides[get_db_session] = _session_override
    return application


@pytest.fixture
async def client(app) -> AsyncGenerator[AsyncClient]:
    """Async HTTP client bound to the app through ASGITransport."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
