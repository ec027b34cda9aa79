"""Twilio SMS channel using the Twilio REST API over httpx."""

from __future__ import annotations

import time
from typing import TYPE_CHECKING, Any

import httpx

from notification_service.features.notifications.channels.base import ChannelOutcome, FailureKind
from notification_service.infra.external import BaseHTTPClient
from notification_service.infra.logging import get_logger

if TYPE_CHECKING:
    from notification_service.core.settings import ChannelSettings


class TwilioSmsChannel(BaseHTTPClient):
    """Sends SMS through ``POST /Accounts/{sid}/Messages.json``.

    The message SID returned by Twilio becomes the outcome reference.
    """

    def __init__(
        self,
        settings: ChannelSettings,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._configured = settings.twilio_configured
        self._account_sid = settings.twilio_account_sid
        self._from_number = settings.twilio_phone_number
        token = settings.twilio_auth_token.get_secret_value() if settings.twilio_auth_token else ""
        super().__init__(
            base_url=settings.twilio_api_url,
            timeout=timeout,
            auth=(self._account_sid or "", token),
            transport=transport,
        )
        self._logger = get_logger(__name__, channel="sms")

    def get_channel_name(self) -> str:
        return "sms"

    async def send(self, target: str, message: str, payload: dict[str, Any] | None) -> ChannelOutcome:
        """Send one SMS to ``target`` (E.164 phone number)."""
        if not self._configured:
            return ChannelOutcome.failed(FailureKind.CONFIGURATION_MISSING, "Twilio credentials not configured")
        if not target:
            return ChannelOutcome.failed(FailureKind.TARGET_MISSING, "No phone number")

        start_time = time.perf_counter()
        try:
            response = await self.post_form(
                f"/Accounts/{self._account_sid}/Messages.json",
                data={"To": target, "From": self._from_number, "Body": message},
            )
        except httpx.TimeoutException as exc:
            return ChannelOutcome.failed(FailureKind.TIMEOUT, f"Twilio request timed out: {exc}", _elapsed_ms(start_time))
        except httpx.HTTPError as exc:
            self._logger.warning(f"Twilio request failed: {exc}")
            return ChannelOutcome.failed(FailureKind.PROVIDER_ERROR, str(exc), _elapsed_ms(start_time))

        elapsed_ms = _elapsed_ms(start_time)
        if response.is_error:
            detail = _error_detail(response)
            self._logger.warning(
                f"Twilio rejected SMS: {detail}",
                extra={"status_code": response.status_code},
            )
            return ChannelOutcome.failed(FailureKind.PROVIDER_ERROR, detail, elapsed_ms)

        sid = _json_field(response, "sid")
        self._logger.info("SMS sent", extra={"reference": sid, "response_time_ms": elapsed_ms})
        return ChannelOutcome.sent(sid, elapsed_ms)


def _elapsed_ms(start_time: float) -> int:
    return int((time.perf_counter() - start_time) * 1000)


def _json_field(response: httpx.Response, key: str) -> str | None:
    try:
        body = response.json()
    except ValueError:
        return None
    value = body.get(key) if isinstance(body, dict) else None
    return str(value) if value is not None else None


def _error_detail(response: httpx.Response) -> str:
    message = _json_field(response, "message")
    return f"Twilio HTTP {response.status_code}: {message or response.text[:200]}"
