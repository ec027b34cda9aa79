"""Health service: runs dependency checks and aggregates them."""

from __future__ import annotations

import asyncio
import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Annotated, Any

from fastapi import Depends

from notification_service.core.settings import get_app_settings, get_rabbit_settings

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Mapping

logger = logging.getLogger(__name__)

# Readiness depends only on these checks
CRITICAL_CHECKS = frozenset({"database"})


class HealthService:
    """Aggregates named async checks into health, readiness and liveness results."""

    def __init__(
        self,
        checks: Mapping[str, Callable[[], Awaitable[bool]]],
        service_name: str,
        version: str,
        timeout: float = 2.0,
    ) -> None:
        self._checks = dict(checks)
        self._service_name = service_name
        self._version = version
        self._timeout = timeout

    async def _run(self, name: str, check: Callable[[], Awaitable[bool]]) -> bool:
        try:
            return bool(await asyncio.wait_for(check(), self._timeout))
        except TimeoutError:
            logger.warning(f"Health check {name} timed out")
            return False
        except Exception as exc:
            logger.warning(f"Health check {name} failed: {exc!r}")
            return False

    async def run_checks(self) -> dict[str, bool]:
        names = list(self._checks)
        results = await asyncio.gather(*(self._run(name, self._checks[name]) for name in names))
        return dict(zip(names, results, strict=True))

    async def check_health(self) -> dict[str, Any]:
        checks = await self.run_checks()
        if all(checks.values()):
            status = "healthy"
        elif all(ok for name, ok in checks.items() if name in CRITICAL_CHECKS):
            status = "degraded"
        else:
            status = "unhealthy"
        return {
            "status": status,
            "timestamp": datetime.now(UTC),
            "service": self._service_name,
            "version": self._version,
            "checks": checks,
        }

    async def readiness(self) -> dict[str, Any]:
        checks = await self.run_checks()
        ready = all(ok for name, ok in checks.items() if name in CRITICAL_CHECKS)
        return {"ready": ready, "checks": checks, "timestamp": datetime.now(UTC)}

    async def liveness(self) -> dict[str, Any]:
        return {"alive": True, "timestamp": datetime.now(UTC), "service": self._service_name}


async def _database_check() -> bool:
    from notification_service.infra.database import check_database

    return await check_database()


async def _broker_check() -> bool:
    from notification_service.infra.messaging.broker import is_broker_connected

    return is_broker_connected()


def get_health_service() -> HealthService:
    """Health service with the database check, plus the broker when RabbitMQ is enabled."""
    app_settings = get_app_settings()
    checks: dict[str, Callable[[], Awaitable[bool]]] = {"database": _database_check}
    if get_rabbit_settings().is_configured:
        checks["broker"] = _broker_check
    return HealthService(checks, service_name=app_settings.service_name, version=app_settings.version)


HealthServiceDep = Annotated[HealthService, Depends(get_health_service)]
