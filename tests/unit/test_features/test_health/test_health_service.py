"""Unit tests for HealthService and the health endpoints."""

from __future__ import annotations

import asyncio

import pytest

from notification_service.features.health.service import HealthService, get_health_service


async def _ok() -> bool:
    return True


async def _down() -> bool:
    return False


async def _raises() -> bool:
    raise ConnectionError("refused")


async def _hangs() -> bool:
    await asyncio.sleep(5)
    return True


def _service(**checks) -> HealthService:
    return HealthService(checks, service_name="notification-service", version="1.0.0", timeout=0.1)


@pytest.mark.unit
class TestHealthService:
    """Test suite for check aggregation."""

    @pytest.mark.asyncio
    async def test_all_checks_pass_is_healthy(self):
        """Every check passing is healthy."""
        result = await _service(database=_ok, broker=_ok).check_health()

        assert result["status"] == "healthy"
        assert result["checks"] == {"database": True, "broker": True}
        assert result["service"] == "notification-service"
        assert result["version"] == "1.0.0"

    @pytest.mark.asyncio
    async def test_broker_down_is_degraded(self):
        """A non-critical failure degrades but stays ready."""
        service = _service(database=_ok, broker=_down)

        assert (await service.check_health())["status"] == "degraded"
        assert (await service.readiness())["ready"] is True

    @pytest.mark.asyncio
    async def test_database_down_is_unhealthy(self):
        """The database is critical for health and readiness."""
        service = _service(database=_down, broker=_ok)

        assert (await service.check_health())["status"] == "unhealthy"
        assert (await service.readiness())["ready"] is False

    @pytest.mark.asyncio
    async def test_raising_and_hanging_checks_fail(self):
        """Exceptions and timeouts count as failed checks."""
        checks = await _service(database=_raises, broker=_hangs).run_checks()
        assert checks == {"database": False, "broker": False}

    @pytest.mark.asyncio
    async def test_liveness_needs_no_checks(self):
        """Liveness never runs dependency checks."""
        result = await _service(database=_hangs).liveness()
        assert result["alive"] is True

    def test_default_checks_without_broker(self):
        """With RabbitMQ disabled only the database is checked."""
        service = get_health_service()
        assert list(service._checks) == ["database"]


@pytest.mark.unit
class TestHealthEndpoints:
    """Tests for /health, /health/ready and /health/live."""

    @pytest.fixture
    def override_health(self, app):
        def _override(**checks):
            app.dependency_overrides[get_health_service] = lambda: _service(**checks)

        return _override

    @pytest.mark.asyncio
    async def test_health(self, client, override_health):
        """The health endpoint reports per-check results."""
        override_health(database=_ok)

        response = await client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    @pytest.mark.asyncio
    async def test_ready_is_503_without_database(self, client, override_health):
        """Readiness fails with 503 while the database is down."""
        override_health(database=_down)

        response = await client.get("/health/ready")

        assert response.status_code == 503
        assert response.json()["ready"] is False

    @pytest.mark.asyncio
    async def test_live(self, client, override_health):
        """Liveness is always 200."""
        override_health(database=_down)

        response = await client.get("/health/live")

        assert response.status_code == 200
        assert response.json()["alive"] is True
