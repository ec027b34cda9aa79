"""Notification service backing the HTTP API."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from notification_service.core.exceptions import NotFoundException
from notification_service.features.notifications.repository import (
    NotificationRepository,
    get_notification_repository,
)
from notification_service.features.notifications.schemas import (
    BatchItemError,
    BatchNotificationRequest,
    BatchNotificationResponse,
    DispatchRequest,
    DispatchResult,
    NotificationListResponse,
    NotificationStatusResponse,
    NotificationSummary,
)

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from notification_service.features.notifications.dispatcher import NotificationDispatcher

logger = logging.getLogger(__name__)


class NotificationService:
    """Send notifications through the dispatcher and read their stored status.

    Sends go through the dispatcher, which manages its own sessions; reads use
    the request-scoped session passed in by the route.
    """

    def __init__(
        self,
        dispatcher: NotificationDispatcher,
        repository: NotificationRepository | None = None,
    ) -> None:
        self._dispatcher = dispatcher
        self._repository = repository or get_notification_repository()

    async def send(self, request: DispatchRequest) -> DispatchResult:
        return await self._dispatcher.dispatch(request)

    async def send_batch(self, request: BatchNotificationRequest) -> BatchNotificationResponse:
        """Dispatch one notification per recipient, in order.

        A failing recipient yields an error item; the rest of the batch
        still runs.
        """
        results: list[DispatchResult | BatchItemError] = []
        for recipient in request.recipients:
            try:
                item = DispatchRequest(
                    recipient_id=recipient.recipient_id,
                    recipient_phone=recipient.recipient_phone,
                    channels=request.channels,
                    type=request.type,
                    priority=request.priority,
                    data=request.data,
                )
                results.append(await self._dispatcher.dispatch(item))
            except Exception as exc:
                logger.warning(
                    f"Batch item failed: {exc!r}",
                    extra={"recipient_id": recipient.recipient_id},
                    exc_info=True,
                )
                results.append(BatchItemError(error=str(exc) or type(exc).__name__))

        logger.info(
            "Batch dispatched",
            extra={
                "total": len(results),
                "failed_items": sum(isinstance(r, BatchItemError) for r in results),
            },
        )
        return BatchNotificationResponse(results=results, total=len(results))

    async def get_status(self, session: AsyncSession, notification_id: str) -> NotificationStatusResponse:
        """Stored status of one notification.

        Raises:
            NotFoundException: If no notification has this id.
        """
        row = await self._repository.get(session, notification_id)
        if row is None:
            raise NotFoundException(
                detail=f"Notification {notification_id} not found",
                type="notification-not-found",
                extra={"notification_id": notification_id},
            )
        return NotificationStatusResponse(
            notification_id=row.id,
            status=row.status,
            channels=row.channel_status or {},
            created_at=row.created_at,
            sent_at=row.sent_at,
            delivered_at=row.delivered_at,
        )

    async def list_for_recipient(
        self,
        session: AsyncSession,
        recipient_id: str,
        *,
        limit: int = 20,
        offset: int = 0,
    ) -> NotificationListResponse:
        page = await self._repository.list_by_recipient(session, recipient_id, limit=limit, offset=offset)
        return NotificationListResponse(
            notifications=[
                NotificationSummary(
                    notification_id=row.id,
                    type=row.type,
                    message=row.message,
                    status=row.status,
                    channels=row.channel_status or {},
                    created_at=row.created_at,
                    sent_at=row.sent_at,
                )
                for row in page.items
            ],
            total=page.total,
        )
