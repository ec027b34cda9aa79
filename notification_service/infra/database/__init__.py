"""Async engine and session factory."""

from __future__ import annotations

from .session import (
    AsyncSessionLocal,
    check_database,
    close_database,
    engine,
    get_async_session,
    init_database,
)

__all__ = [
    "AsyncSessionLocal",
    "check_database",
    "close_database",
    "engine",
    "get_async_session",
    "init_database",
]
