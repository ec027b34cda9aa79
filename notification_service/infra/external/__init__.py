"""HTTP clients for external services."""

from __future__ import annotations

from .base_client import BaseHTTPClient

__all__ = ["BaseHTTPClient"]
