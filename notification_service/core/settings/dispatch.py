"""Dispatch time bounds.

Environment variables use DISPATCH_ prefix, e.g. DISPATCH_CHANNEL_TIMEOUT=10.
"""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class DispatchSettings(BaseSettings):
    """Timeouts applied by the dispatch orchestrator, in seconds."""

    channel_timeout: float = Field(
        default=10.0, gt=0, le=120.0, description="Upper bound for one channel adapter call.",
    )
    resolver_timeout: float = Field(
        default=5.0, gt=0, le=60.0, description="Upper bound for the recipient phone lookup.",
    )
    store_timeout: float = Field(
        default=10.0, gt=0, le=120.0, description="Upper bound for one status store statement.",
    )
    lookup_timeout: float = Field(
        default=5.0, gt=0, le=60.0, description="Upper bound for the SOS request lookup on match events.",
    )

    model_config = SettingsConfigDict(
        env_prefix="DISPATCH_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        frozen=True,
        extra="ignore",
        env_ignore_empty=True,
    )
