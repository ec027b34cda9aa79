"""FastAPI dependencies for the notifications feature.

The dispatcher is built once by the application lifespan and kept on
``app.state``; tests replace these dependencies with ``app.dependency_overrides``.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from notification_service.core.dependencies import get_db_session
from notification_service.core.exceptions import ServiceUnavailableException
from notification_service.features.notifications.dispatcher import NotificationDispatcher
from notification_service.features.notifications.service import NotificationService

SessionDep = Annotated[AsyncSession, Depends(get_db_session)]


def get_dispatcher(request: Request) -> NotificationDispatcher:
    dispatcher = getattr(request.app.state, "dispatcher", None)
    if dispatcher is None:
        raise ServiceUnavailableException(detail="Notification dispatcher is not initialized")
    return dispatcher


DispatcherDep = Annotated[NotificationDispatcher, Depends(get_dispatcher)]


def get_notification_service(dispatcher: DispatcherDep) -> NotificationService:
    return NotificationService(dispatcher)


NotificationServiceDep = Annotated[NotificationService, Depends(get_notification_service)]
