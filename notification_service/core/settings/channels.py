"""Delivery channel settings (Twilio SMS, Firebase push, feature flags).

Variable names follow the platform-wide convention (no prefix), e.g.
SMS_ENABLED=false, TWILIO_ACCOUNT_SID=AC..., FIREBASE_PROJECT_ID=rescuemesh.
"""

from __future__ import annotations

from typing import Literal

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

ProviderMode = Literal["auto", "live", "mock"]


class ChannelSettings(BaseSettings):
    """Channel enablement and provider credentials."""

    # ─────────────────────────────────────────────────────
    # Channel flags
    # ─────────────────────────────────────────────────────
    sms_enabled: bool = Field(default=True, description="Attempt the sms channel when requested.")
    push_enabled: bool = Field(default=True, description="Attempt the push channel when requested.")
    whatsapp_enabled: bool = Field(
        default=False,
        description="Reserved; no whatsapp provider is wired, so the channel is never attempted.",
    )

    provider_mode: ProviderMode = Field(
        default="auto",
        description=(
            "auto: live providers in production when credentials are present, mocks otherwise. "
            "live: always use live providers (credentials must be set). mock: always mock."
        ),
    )

    # ─────────────────────────────────────────────────────
    # Twilio (SMS)
    # ─────────────────────────────────────────────────────
    twilio_account_sid: str | None = Field(default=None, description="Twilio account SID.")
    twilio_auth_token: SecretStr | None = Field(default=None, description="Twilio auth token.")
    twilio_phone_number: str | None = Field(default=None, description="Sender phone number (E.164).")
    twilio_api_url: str = Field(
        default="https://api.twilio.com/2010-04-01",
        description="Twilio REST API base URL.",
    )

    # ─────────────────────────────────────────────────────
    # Firebase (push)
    # ─────────────────────────────────────────────────────
    firebase_project_id: str | None = Field(default=None, description="Firebase project id.")
    firebase_private_key: SecretStr | None = Field(
        default=None,
        description="Service account private key; literal '\\n' sequences are unescaped.",
    )
    firebase_client_email: str | None = Field(default=None, description="Service account email.")
    push_title: str = Field(default="RescueMesh Alert", description="Notification title for push messages.")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        frozen=True,
        extra="ignore",
        env_ignore_empty=True,
    )

    @field_validator("firebase_private_key", mode="before")
    @classmethod
    def _unescape_private_key(cls, value: object) -> object:
        """Env files carry the PEM key on one line with escaped newlines."""
        if isinstance(value, str):
            return value.replace("\\n", "\n")
        return value

    @property
    def twilio_configured(self) -> bool:
        """Whether every Twilio credential is present."""
        return bool(self.twilio_account_sid and self.twilio_auth_token and self.twilio_phone_number)

    @property
    def firebase_configured(self) -> bool:
        """Whether every Firebase service-account field is present."""
        return bool(self.firebase_project_id and self.firebase_private_key and self.firebase_client_email)
