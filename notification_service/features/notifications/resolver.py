"""Recipient lookups against the user service.

Both lookups are time-bounded and never raise: any timeout, transport
error, non-2xx response, undecodable body or missing field yields None.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import httpx

from notification_service.infra.external import BaseHTTPClient

logger = logging.getLogger(__name__)


class RecipientResolver(BaseHTTPClient):
    """Client for ``GET {USER_SERVICE_URL}/api/users/{recipient_id}``."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 5.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        super().__init__(base_url=base_url, timeout=timeout, transport=transport)

    async def _fetch_profile(self, recipient_id: str) -> dict[str, Any] | None:
        try:
            # Bounded end to end, not only per network phase
            body = await asyncio.wait_for(self.get(f"/api/users/{recipient_id}"), self.timeout)
        except (TimeoutError, httpx.HTTPError, ValueError) as exc:
            logger.warning(
                f"Failed to fetch user profile: {exc!r}",
                extra={"recipient_id": recipient_id},
            )
            return None

        if not isinstance(body, dict):
            return None
        profile = body.get("profile")
        return profile if isinstance(profile, dict) else None

    async def resolve_phone(self, recipient_id: str) -> str | None:
        """Return ``profile.phone`` for the recipient, or None."""
        profile = await self._fetch_profile(recipient_id)
        phone = profile.get("phone") if profile else None
        return phone if isinstance(phone, str) and phone else None

    async def resolve_push_token(self, recipient_id: str) -> str | None:
        """Return ``profile.pushToken`` (or ``profile.fcmToken``), or None."""
        profile = await self._fetch_profile(recipient_id)
        if not profile:
            return None
        token = profile.get("pushToken") or profile.get("fcmToken")
        return token if isinstance(token, str) and token else None
