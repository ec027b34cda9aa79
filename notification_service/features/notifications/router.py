"""API router for the notifications feature.

Endpoints:
- POST /notifications/send - Dispatch one notification
- POST /notifications/batch - Dispatch the same notification to many recipients
- GET /notifications/{notification_id}/status - Stored status of one notification
- GET /notifications/user/{user_id} - A recipient's notifications, newest first
"""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Path, Query

from notification_service.features.notifications.dependencies import (
    NotificationServiceDep,
    SessionDep,
)
from notification_service.features.notifications.schemas import (
    BatchNotificationRequest,
    BatchNotificationResponse,
    DispatchResult,
    NotificationListResponse,
    NotificationStatusResponse,
    SendNotificationRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/notifications",
    tags=["notifications"],
)


@router.post(
    "/send",
    response_model=DispatchResult,
    summary="Send a notification",
    description="""
Dispatch one notification to a recipient over the requested channels.

Channels are attempted concurrently; the notification is `sent` if any
channel succeeded and `failed` otherwise. Supplying a `notificationId` that
was already dispatched returns the stored result without sending again.
""",
    responses={503: {"description": "Notification store unavailable"}},
)
async def send_notification(
    body: SendNotificationRequest,
    service: NotificationServiceDep,
) -> DispatchResult:
    return await service.send(body)


@router.post(
    "/batch",
    response_model=BatchNotificationResponse,
    summary="Send a notification to many recipients",
    description="Recipients are processed in order; a failing recipient yields an `{error}` item.",
)
async def send_batch(
    body: BatchNotificationRequest,
    service: NotificationServiceDep,
) -> BatchNotificationResponse:
    return await service.send_batch(body)


@router.get(
    "/{notification_id}/status",
    response_model=NotificationStatusResponse,
    summary="Get notification status",
    responses={404: {"description": "Notification not found"}},
)
async def get_notification_status(
    notification_id: Annotated[str, Path(min_length=1, max_length=64)],
    session: SessionDep,
    service: NotificationServiceDep,
) -> NotificationStatusResponse:
    return await service.get_status(session, notification_id)


@router.get(
    "/user/{user_id}",
    response_model=NotificationListResponse,
    summary="List a recipient's notifications",
)
async def list_user_notifications(
    user_id: Annotated[str, Path(min_length=1, max_length=100)],
    session: SessionDep,
    service: NotificationServiceDep,
    limit: Annotated[int, Query(ge=1, le=100)] = 20,
    offset: Annotated[int, Query(ge=0)] = 0,
) -> NotificationListResponse:
    return await service.list_for_recipient(session, user_id, limit=limit, offset=offset)
