"""Queue event -> DispatchRequest mapping.

Message bodies look like ``{"event": "match.created", "data": {...}}``.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import httpx
from pydantic import BaseModel, ValidationError

from notification_service.features.notifications.schemas import DispatchRequest
from notification_service.infra.external import BaseHTTPClient

logger = logging.getLogger(__name__)

SOS_MATCH = "sos_match"
SOS_REQUEST = "sos_request"
DISASTER_ALERT = "disaster_alert"
MATCH_ACCEPTED = "match_accepted"


class InvalidEventError(ValueError):
    """The message cannot be turned into a dispatch request; retrying will not help."""


class NotificationEvent(BaseModel):
    """Envelope published by the other RescueMesh services."""

    event: str
    data: dict[str, Any]


class SosServiceClient(BaseHTTPClient):
    """Client for ``GET {SOS_SERVICE_URL}/api/sos/requests/{requestId}``."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 5.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        super().__init__(base_url=base_url, timeout=timeout, transport=transport)

    async def get_request(self, request_id: str) -> dict[str, Any] | None:
        """Fetch an SOS request; None on any failure."""
        try:
            body = await asyncio.wait_for(self.get(f"/api/sos/requests/{request_id}"), self.timeout)
        except (TimeoutError, httpx.HTTPError, ValueError) as exc:
            logger.warning(f"Failed to fetch SOS request: {exc!r}", extra={"request_id": request_id})
            return None
        return body if isinstance(body, dict) else None


def parse_event(body: Any) -> NotificationEvent:
    """Validate a decoded message body.

    Raises:
        InvalidEventError: If the body is not an ``{event, data}`` object.
    """
    try:
        return NotificationEvent.model_validate(body)
    except ValidationError as exc:
        msg = f"Malformed notification message: {exc.error_count()} validation error(s)"
        raise InvalidEventError(msg) from exc


def _location_text(location: Any) -> str:
    if isinstance(location, dict):
        lat, lon = location.get("latitude"), location.get("longitude")
        if lat is not None and lon is not None:
            return f"{lat}, {lon}"
    return "location"


def _priority_for(urgency: Any) -> str:
    return "high" if urgency == "critical" else "medium"


def _request(**fields: Any) -> DispatchRequest:
    try:
        return DispatchRequest.model_validate(fields)
    except ValidationError as exc:
        msg = f"Event does not describe a valid notification: {exc.error_count()} validation error(s)"
        raise InvalidEventError(msg) from exc


class EventMapper:
    """Maps queue events onto dispatch requests."""

    def __init__(self, sos_client: SosServiceClient, app_base_url: str) -> None:
        self._sos_client = sos_client
        self._app_base_url = app_base_url.rstrip("/")

    async def to_request(self, event: NotificationEvent, notification_id: str | None = None) -> DispatchRequest:
        """Build the DispatchRequest for an event.

        Raises:
            InvalidEventError: When a required field (e.g. the recipient) is missing.
        """
        data = event.data
        match event.event:
            case "match.created":
                return await self._match_created(data, notification_id)
            case "sos_request":
                return _request(
                    recipient_id=data.get("recipientId"),
                    recipient_phone=data.get("recipientPhone"),
                    channels=data.get("channels") or ["sms", "push"],
                    type=SOS_REQUEST,
                    priority=_priority_for(data.get("urgency")),
                    data=data,
                    notification_id=notification_id,
                )
            case "disaster_alert":
                return _request(
                    recipient_id=data.get("recipientId"),
                    recipient_phone=data.get("recipientPhone"),
                    channels=["sms", "push"],
                    type=DISASTER_ALERT,
                    priority="high",
                    data=data,
                    notification_id=notification_id,
                )
            case "match_accepted":
                return _request(
                    recipient_id=data.get("recipientId"),
                    channels=["push"],
                    type=MATCH_ACCEPTED,
                    priority="medium",
                    data=data,
                    notification_id=notification_id,
                )
            case _:
                logger.info(f"Unmapped event {event.event!r}; dispatching from its data", extra={"event": event.event})
                fields = {**data}
                if notification_id:
                    fields["notificationId"] = notification_id
                return _request(**fields)

    async def _match_created(self, data: dict[str, Any], notification_id: str | None) -> DispatchRequest:
        volunteer_id = data.get("volunteerId")
        request_id = data.get("requestId")
        if not volunteer_id:
            msg = "match.created event without volunteerId"
            raise InvalidEventError(msg)

        sos = (await self._sos_client.get_request(str(request_id))) if request_id else None
        sos = sos or {}
        needed = (
            data.get("skillType") or data.get("resourceType") or sos.get("skillType") or sos.get("resourceType")
        )
        urgency = sos.get("urgency")
        location = sos.get("location")

        message = (
            "You have been matched to an emergency request. "
            f"{needed or 'Assistance'} needed at {_location_text(location)}. "
            f"Urgency: {urgency or 'high'}"
        )
        return _request(
            recipient_id=volunteer_id,
            channels=["sms", "push"],
            type=SOS_MATCH,
            priority=_priority_for(urgency),
            data={
                "matchId": data.get("matchId"),
                "requestId": request_id,
                "message": message,
                "location": location,
                "actionUrl": f"{self._app_base_url}/requests/{request_id}",
            },
            notification_id=notification_id,
        )
