"""Message templates per notification type."""

from __future__ import annotations

from typing import Any

_TEMPLATES: dict[str, tuple[str, str]] = {
    "sos_match": ("Emergency Match", "You have been matched to an emergency request"),
    "sos_request": ("New SOS Request", "Emergency assistance needed"),
    "disaster_alert": ("Disaster Alert", "New disaster in your area"),
    "match_accepted": ("Match Accepted", "A volunteer has accepted your match"),
}

GENERIC_FALLBACK = "Notification from RescueMesh"


def build_message(notification_type: str, payload: dict[str, Any] | None) -> str:
    """Render the message text; never raises.

    Known types render ``"<Prefix>: <payload.message or default>"``; any other
    type renders the payload message or the generic fallback.
    """
    custom = payload.get("message") if isinstance(payload, dict) else None
    text = str(custom) if custom else None

    template = _TEMPLATES.get(notification_type)
    if template is None:
        return text or GENERIC_FALLBACK

    prefix, default = template
    return f"{prefix}: {text or default}"
