"""Database primitives: declarative base, generic repository, exceptions."""

from __future__ import annotations

from .base import NAMING_CONVENTION, Base
from .exceptions import RepositoryError, StoreTimeoutError
from .repository import BaseRepository, SearchResult

__all__ = [
    "NAMING_CONVENTION",
    "Base",
    "BaseRepository",
    "RepositoryError",
    "SearchResult",
    "StoreTimeoutError",
]
