"""RabbitMQ broker configuration using FastStream.

The RabbitRouter wraps a RabbitBroker and integrates with FastAPI: when the
router is included in the app, the broker connects and its subscribers
start as part of the application lifespan.

Usage:
    - Handlers register on ``get_router()`` at import time
    - Health checks call ``is_broker_connected()``
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from notification_service.core.settings import get_rabbit_settings

if TYPE_CHECKING:
    from faststream.rabbit import RabbitBroker
    from faststream.rabbit.fastapi import RabbitRouter as RabbitRouterType
else:
    RabbitRouterType = Any

logger = logging.getLogger(__name__)

rabbit_settings = get_rabbit_settings()

router: RabbitRouterType | None = None
broker: RabbitBroker | None = None
_not_configured_logged = False


def _ensure_router_initialized() -> RabbitRouterType | None:
    """Create the RabbitRouter on first use."""
    global router, broker, _not_configured_logged

    if router is not None:
        return router

    if not rabbit_settings.is_configured:
        if not _not_configured_logged:
            logger.warning("RabbitMQ not configured - queue consumer disabled")
            _not_configured_logged = True
        return None

    from faststream.rabbit.fastapi import RabbitRouter

    router = RabbitRouter(
        url=rabbit_settings.get_url(),
        graceful_timeout=rabbit_settings.graceful_timeout,
        # Channel QoS: bounds concurrent unacknowledged deliveries
        max_consumers=rabbit_settings.prefetch_count,
        logger=logger,
        schema_url="/asyncapi",
        include_in_schema=True,
        description="Notification dispatch requests consumed from RabbitMQ",
    )
    broker = router.broker
    return router


def get_router() -> RabbitRouterType | None:
    """Get the RabbitMQ router for FastAPI integration.

    Returns:
        RabbitRouter instance or None if not configured.
    """
    return _ensure_router_initialized()


def is_broker_connected() -> bool:
    """Whether the broker is running with an open connection."""
    if broker is None or not getattr(broker, "running", False):
        return False
    connection = getattr(broker, "_connection", None)
    if connection is None:
        return False
    return not getattr(connection, "is_closed", False)


# Initialize eagerly so handler modules can register subscribers during import.
_ensure_router_initialized()
