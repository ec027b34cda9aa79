"""Run the notification service: ``python -m notification_service``."""

from __future__ import annotations

import uvicorn

from notification_service.core.settings import get_app_settings, get_logging_settings


def main() -> None:
    """Serve the FastAPI application with uvicorn using configured host and port."""
    settings = get_app_settings()
    log_settings = get_logging_settings()

    uvicorn.run(
        "notification_service.app.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        access_log=settings.debug,
        log_level=log_settings.level.lower(),
    )


if __name__ == "__main__":
    main()
