"""Router registry and setup."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from notification_service.core.settings import get_app_settings
from notification_service.features.health.router import router as health_router
from notification_service.features.metrics.router import router as metrics_router
from notification_service.features.notifications.router import router as notifications_router
from notification_service.infra.messaging.broker import get_router as get_rabbit_router

if TYPE_CHECKING:
    from fastapi import FastAPI

    from notification_service.core.settings import AppSettings

logger = logging.getLogger(__name__)


def setup_routers(app: FastAPI, app_settings: AppSettings | None = None) -> None:
    """Register all feature routers with the application.

    Args:
        app: FastAPI application instance.
        app_settings: Optional application settings override for the API prefix.
    """
    app_settings = app_settings or get_app_settings()
    api_prefix = app_settings.api_prefix

    # Probes and metrics live at the root, outside the API prefix
    app.include_router(metrics_router, tags=["observability"])
    app.include_router(health_router, tags=["health"])

    app.include_router(notifications_router, prefix=api_prefix, tags=["notifications"])

    # RabbitRouter brings the broker lifespan and the AsyncAPI docs at /asyncapi
    rabbit_router = get_rabbit_router()
    rabbit_enabled = False
    if rabbit_router is not None:
        # Import handlers to register them with the router
        import notification_service.infra.messaging.handlers  # noqa: F401

        app.include_router(rabbit_router, tags=["messaging"])
        rabbit_enabled = True
        logger.info("RabbitMQ router included - AsyncAPI docs at /asyncapi")

    logger.info(
        "Router setup complete",
        extra={"api_prefix": api_prefix, "rabbitmq_enabled": rabbit_enabled},
    )
