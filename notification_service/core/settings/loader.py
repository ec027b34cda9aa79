"""LRU-cached settings loaders.

Settings are loaded and validated once, then cached for the lifetime of the process.

Testing:
    In tests, clear the cache to force reload:
    get_app_settings.cache_clear()

    Or call clear_settings_cache() to reset every loader.
"""

from __future__ import annotations

from functools import lru_cache

from .app import AppSettings
from .channels import ChannelSettings
from .dispatch import DispatchSettings
from .logs import LoggingSettings
from .postgres import PostgresSettings
from .rabbit import RabbitSettings
from .upstream import UpstreamSettings


@lru_cache(maxsize=1)
def get_app_settings() -> AppSettings:
    """Get cached application settings.

    Returns:
        Validated and frozen AppSettings instance.
    """
    return AppSettings()


@lru_cache(maxsize=1)
def get_db_settings() -> PostgresSettings:
    """Get cached database settings.

    Returns:
        Validated and frozen PostgresSettings instance.
    """
    return PostgresSettings()


@lru_cache(maxsize=1)
def get_rabbit_settings() -> RabbitSettings:
    """Get cached RabbitMQ settings.

    Returns:
        Validated and frozen RabbitSettings instance.
    """
    return RabbitSettings()


@lru_cache(maxsize=1)
def get_logging_settings() -> LoggingSettings:
    """Get cached logging settings.

    Returns:
        Validated and frozen LoggingSettings instance.
    """
    return LoggingSettings()


@lru_cache(maxsize=1)
def get_channel_settings() -> ChannelSettings:
    """Get cached channel settings."""
    return ChannelSettings()


@lru_cache(maxsize=1)
def get_dispatch_settings() -> DispatchSettings:
    """Get cached dispatch timeouts."""
    return DispatchSettings()


@lru_cache(maxsize=1)
def get_upstream_settings() -> UpstreamSettings:
    """Get cached upstream service URLs."""
    return UpstreamSettings()


def clear_settings_cache() -> None:
    """Clear every settings cache (tests and config reloads)."""
    for loader in (
        get_app_settings,
        get_db_settings,
        get_rabbit_settings,
        get_logging_settings,
        get_channel_settings,
        get_dispatch_settings,
        get_upstream_settings,
    ):
        loader.cache_clear()
