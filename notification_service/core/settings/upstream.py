"""URLs of the neighbouring RescueMesh services."""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class UpstreamSettings(BaseSettings):
    """Upstream service locations (USER_SERVICE_URL, SOS_SERVICE_URL, APP_BASE_URL)."""

    user_service_url: str = Field(
        default="http://user-service:3001",
        description="Base URL of the user service used to resolve phone numbers and push tokens.",
    )
    sos_service_url: str = Field(
        default="http://sos-service:3004",
        description="Base URL of the SOS service used to enrich match events.",
    )
    app_base_url: str = Field(
        default="https://app.rescuemesh.com",
        description="Public web app URL used to build action links.",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        frozen=True,
        extra="ignore",
        env_ignore_empty=True,
    )
