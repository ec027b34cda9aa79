"""Modular Pydantic Settings v2 configuration.

Settings are split by domain (app/db/broker/logging/channels/dispatch/upstream),
read from environment variables or a .env file, frozen, and cached per process.

Import settings via cached loaders:
    from notification_service.core.settings import get_app_settings
"""

from __future__ import annotations

from .app import AppSettings
from .channels import ChannelSettings
from .dispatch import DispatchSettings
from .loader import (
    clear_settings_cache,
    get_app_settings,
    get_channel_settings,
    get_db_settings,
    get_dispatch_settings,
    get_logging_settings,
    get_rabbit_settings,
    get_upstream_settings,
)
from .logs import LoggingSettings
from .postgres import PostgresSettings
from .rabbit import RabbitSettings
from .upstream import UpstreamSettings

__all__ = [
    "AppSettings",
    "ChannelSettings",
    "DispatchSettings",
    "LoggingSettings",
    "PostgresSettings",
    "RabbitSettings",
    "UpstreamSettings",
    "clear_settings_cache",
    "get_app_settings",
    "get_channel_settings",
    "get_db_settings",
    "get_dispatch_settings",
    "get_logging_settings",
    "get_rabbit_settings",
    "get_upstream_settings",
]
