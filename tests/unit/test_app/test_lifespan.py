"""Unit tests for application startup and shutdown."""

from __future__ import annotations

from unittest.mock import AsyncMock, patch

import pytest
from fastapi import FastAPI

from notification_service.app.lifespan import lifespan
from notification_service.core.settings import PostgresSettings
from notification_service.features.notifications.channels import MockChannel
from notification_service.features.notifications.dispatcher import NotificationDispatcher


@pytest.fixture
def quiet_infra():
    """Patch out logging reconfiguration and the real database."""
    with (
        patch("notification_service.app.lifespan.setup_logging"),
        patch("notification_service.app.lifespan.shutdown"),
        patch("notification_service.infra.database.init_database", new_callable=AsyncMock) as init_db,
        patch("notification_service.infra.database.close_database", new_callable=AsyncMock) as close_db,
    ):
        yield init_db, close_db


@pytest.mark.unit
class TestLifespan:
    """Test suite for the application lifespan."""

    @pytest.mark.asyncio
    async def test_startup_wires_dispatcher(self, quiet_infra):
        """Startup builds the registry and dispatcher; shutdown releases them."""
        init_db, close_db = quiet_infra
        app = FastAPI()

        async with lifespan(app):
            assert isinstance(app.state.dispatcher, NotificationDispatcher)
            assert set(app.state.channels) == {"sms", "push"}
            assert all(isinstance(adapter, MockChannel) for adapter in app.state.channels.values())
            init_db.assert_awaited_once()

        assert app.state.dispatcher is None
        close_db.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_database_failure_is_fatal_when_required(self, quiet_infra):
        """Startup fails when the required database is unreachable."""
        init_db, _ = quiet_infra
        init_db.side_effect = ConnectionError("refused")

        with pytest.raises(ConnectionError):
            async with lifespan(FastAPI()):
                pass

    @pytest.mark.asyncio
    async def test_database_failure_tolerated_when_optional(self, quiet_infra):
        """With startup_require_db disabled the service starts degraded."""
        init_db, _ = quiet_infra
        init_db.side_effect = ConnectionError("refused")
        app = FastAPI()

        with patch(
            "notification_service.app.lifespan.get_db_settings",
            return_value=PostgresSettings(startup_require_db=False),
        ):
            async with lifespan(app):
                assert app.state.dispatcher is not None

    @pytest.mark.asyncio
    async def test_channel_close_errors_do_not_stop_shutdown(self, quiet_infra):
        """A channel failing to close does not block the rest of shutdown."""
        _, close_db = quiet_infra
        app = FastAPI()

        async with lifespan(app):
            app.state.channels["sms"].close = AsyncMock(side_effect=RuntimeError("already closed"))

        close_db.assert_awaited_once()
