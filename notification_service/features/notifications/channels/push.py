"""Firebase Cloud Messaging push channel."""

from __future__ import annotations

import asyncio
import time
from typing import TYPE_CHECKING, Any, Protocol

import firebase_admin
from firebase_admin import credentials, messaging
from firebase_admin.exceptions import FirebaseError

from notification_service.features.notifications.channels.base import ChannelOutcome, FailureKind
from notification_service.infra.logging import get_logger

if TYPE_CHECKING:
    from notification_service.core.settings import ChannelSettings

FIREBASE_APP_NAME = "notification-service"


class PushTokenLookup(Protocol):
    """Resolves a recipient id to a device registration token."""

    async def resolve_push_token(self, recipient_id: str) -> str | None: ...


class FirebasePushChannel:
    """Sends push notifications through firebase-admin.

    The target is the recipient id; the device token is looked up per send
    and a missing token yields a ``target_missing`` outcome. firebase-admin is
    synchronous, so sends run in a worker thread.
    """

    def __init__(
        self,
        settings: ChannelSettings,
        token_lookup: PushTokenLookup,
        app: firebase_admin.App | None = None,
    ) -> None:
        self._settings = settings
        self._token_lookup = token_lookup
        self._app = app
        self._owns_app = False
        self._logger = get_logger(__name__, channel="push")

    def get_channel_name(self) -> str:
        return "push"

    def _get_app(self) -> firebase_admin.App:
        if self._app is None:
            try:
                self._app = firebase_admin.get_app(FIREBASE_APP_NAME)
            except ValueError:
                cert = credentials.Certificate(
                    {
                        "type": "service_account",
                        "project_id": self._settings.firebase_project_id,
                        "private_key": self._settings.firebase_private_key.get_secret_value()
                        if self._settings.firebase_private_key
                        else "",
                        "client_email": self._settings.firebase_client_email,
                        "token_uri": "https://oauth2.googleapis.com/token",
                    }
                )
                self._app = firebase_admin.initialize_app(cert, name=FIREBASE_APP_NAME)
                self._owns_app = True
        return self._app

    def _build_message(self, token: str, message: str, payload: dict[str, Any] | None) -> messaging.Message:
        # FCM data values must be strings
        data = {str(k): str(v) for k, v in (payload or {}).items() if v is not None}
        data["message"] = message
        return messaging.Message(
            token=token,
            notification=messaging.Notification(title=self._settings.push_title, body=message),
            data=data,
        )

    async def send(self, target: str, message: str, payload: dict[str, Any] | None) -> ChannelOutcome:
        """Look up the recipient's FCM token and send the push notification."""
        if not self._settings.firebase_configured:
            return ChannelOutcome.failed(FailureKind.CONFIGURATION_MISSING, "Firebase credentials not configured")

        start_time = time.perf_counter()
        token = await self._token_lookup.resolve_push_token(target)
        if not token:
            return ChannelOutcome.failed(FailureKind.TARGET_MISSING, "No FCM token")

        try:
            app = self._get_app()
            reference = await asyncio.to_thread(
                messaging.send, self._build_message(token, message, payload), app=app
            )
        except (FirebaseError, ValueError) as exc:
            self._logger.warning(f"FCM send failed: {exc}", extra={"recipient_id": target})
            return ChannelOutcome.failed(
                FailureKind.PROVIDER_ERROR,
                str(exc),
                int((time.perf_counter() - start_time) * 1000),
            )

        elapsed_ms = int((time.perf_counter() - start_time) * 1000)
        self._logger.info("Push notification sent", extra={"reference": reference, "response_time_ms": elapsed_ms})
        return ChannelOutcome.sent(reference, elapsed_ms)

    async def close(self) -> None:
        if self._owns_app and self._app is not None:
            await asyncio.to_thread(firebase_admin.delete_app, self._app)
            self._app = None
            self._owns_app = False
