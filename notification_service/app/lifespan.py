"""Application lifespan management.

Startup Order:
1. Core (logging, application info)
2. Database (connectivity with retry, optional create_all)
3. Notifications (channel registry, recipient resolver, dispatcher on ``app.state``)
4. Messaging (queue consumer wired for the RabbitMQ subscriber)

The FastStream RabbitRouter is included in the app by ``setup_routers``;
FastAPI enters its lifespan after this one, so the broker starts consuming
only once the dispatcher exists.

Shutdown Order: Reverse of startup.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from notification_service.core.settings import (
    get_app_settings,
    get_channel_settings,
    get_db_settings,
    get_dispatch_settings,
    get_logging_settings,
    get_rabbit_settings,
    get_upstream_settings,
)
from notification_service.infra.logging import setup_logging, shutdown

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from fastapi import FastAPI

logger = logging.getLogger(__name__)


# =============================================================================
# Startup functions
# =============================================================================


async def _startup_core() -> None:
    """Configure logging and announce the service."""
    app = get_app_settings()
    setup_logging(log_settings=get_logging_settings(), force=True)
    logger.info(
        "Application starting",
        extra={"service": app.service_name, "environment": app.environment, "version": app.version},
    )


async def _startup_database() -> None:
    """Initialize database connection."""
    from notification_service.infra.database import init_database

    # Registers the notifications table on Base.metadata before create_all
    import notification_service.features.notifications.models  # noqa: F401

    db = get_db_settings()
    try:
        await init_database()
        logger.info(
            "Database connection initialized",
            extra={"sqlite_fallback": db.is_sqlite, "pool_size": db.pool_size},
        )
    except Exception as e:
        if db.startup_require_db:
            logger.exception(
                "Database required but unavailable, failing startup",
                extra={"error": str(e), "startup_require_db": True},
            )
            raise
        logger.warning(
            "Database unavailable, continuing in degraded mode",
            extra={"error": str(e), "startup_require_db": False},
        )


async def _startup_notifications(app: FastAPI) -> None:
    """Build the channel registry, resolver and dispatcher once."""
    from notification_service.features.notifications.channels import build_channel_registry
    from notification_service.features.notifications.dispatcher import NotificationDispatcher
    from notification_service.features.notifications.resolver import RecipientResolver
    from notification_service.infra.database import AsyncSessionLocal

    dispatch = get_dispatch_settings()
    upstream = get_upstream_settings()

    resolver = RecipientResolver(upstream.user_service_url, timeout=dispatch.resolver_timeout)
    channels = build_channel_registry(
        get_app_settings(),
        get_channel_settings(),
        dispatch,
        token_lookup=resolver,
    )
    app.state.resolver = resolver
    app.state.channels = channels
    app.state.dispatcher = NotificationDispatcher(channels, resolver, AsyncSessionLocal, dispatch)
    logger.info("Notification dispatcher ready", extra={"channels": sorted(channels)})


async def _startup_messaging(app: FastAPI) -> None:
    """Wire the queue consumer used by the RabbitMQ subscriber."""
    rabbit = get_rabbit_settings()
    if not rabbit.is_configured:
        app.state.sos_client = None
        return

    from notification_service.features.notifications.consumer import NotificationConsumer
    from notification_service.features.notifications.events import EventMapper, SosServiceClient
    from notification_service.infra.messaging.broker import get_router
    from notification_service.infra.messaging.handlers import set_notification_consumer

    router = get_router()
    upstream = get_upstream_settings()
    sos_client = SosServiceClient(upstream.sos_service_url, timeout=get_dispatch_settings().lookup_timeout)
    app.state.sos_client = sos_client

    consumer = NotificationConsumer(
        dispatcher=app.state.dispatcher,
        mapper=EventMapper(sos_client, upstream.app_base_url),
        settings=rabbit,
        publisher=router.broker if router is not None else None,
    )
    set_notification_consumer(consumer)
    logger.info(
        "Notification consumer wired",
        extra={"queue": rabbit.notification_queue, "max_retries": rabbit.max_retries},
    )


# =============================================================================
# Shutdown functions
# =============================================================================


async def _shutdown_messaging(app: FastAPI) -> None:
    if not get_rabbit_settings().is_configured:
        return

    from notification_service.infra.messaging.handlers import set_notification_consumer

    set_notification_consumer(None)
    sos_client = getattr(app.state, "sos_client", None)
    if sos_client is not None:
        await sos_client.close()
    logger.info("Notification consumer detached")


async def _shutdown_notifications(app: FastAPI) -> None:
    """Close provider clients; one failing close does not stop the others."""
    for name, adapter in getattr(app.state, "channels", {}).items():
        try:
            await adapter.close()
        except Exception as e:
            logger.warning(f"Error closing {name} channel", extra={"error": str(e)})

    resolver = getattr(app.state, "resolver", None)
    if resolver is not None:
        await resolver.close()
    app.state.dispatcher = None
    logger.info("Notification channels closed")


async def _shutdown_database() -> None:
    """Close database connection."""
    from notification_service.infra.database import close_database

    await close_database()
    logger.info("Database connection closed")


# =============================================================================
# Main lifespan context manager
# =============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage application lifecycle.

    Args:
        app: FastAPI application instance.

    Yields:
        None during application runtime.
    """
    await _startup_core()
    await _startup_database()
    await _startup_notifications(app)
    await _startup_messaging(app)

    app_settings = get_app_settings()
    logger.info(
        "Application startup complete",
        extra={
            "service": app_settings.service_name,
            "port": app_settings.port,
            "rabbitmq_enabled": get_rabbit_settings().is_configured,
        },
    )

    try:
        yield
    finally:
        logger.info("Application shutting down")
        await _shutdown_messaging(app)
        await _shutdown_notifications(app)
        await _shutdown_database()
        logger.info("Application shutdown complete")
        shutdown()
