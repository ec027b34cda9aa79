"""Dispatch orchestrator: one notification, many channels, one durable status."""

from __future__ import annotations

import asyncio
import time
from typing import TYPE_CHECKING, Any, Protocol

from notification_service.core.database import RepositoryError, StoreTimeoutError
from notification_service.features.notifications.channels.base import ChannelOutcome, FailureKind
from notification_service.features.notifications.messages import build_message
from notification_service.features.notifications.metrics import (
    notification_created_total,
    notification_delivered_total,
    notification_delivery_duration_seconds,
    notification_dispatched_total,
    notification_errors_total,
    notification_recipient_lookups_total,
)
from notification_service.features.notifications.models import (
    Notification,
    NotificationStatus,
    new_notification_id,
    utcnow,
)
from notification_service.features.notifications.repository import (
    NotificationRepository,
    StatusPatch,
    get_notification_repository,
)
from notification_service.features.notifications.schemas import (
    ChannelStatusEntry,
    DispatchRequest,
    DispatchResult,
)
from notification_service.infra.logging import ContextBoundLogger, get_logger

if TYPE_CHECKING:
    from collections.abc import Awaitable, Mapping, Sequence
    from datetime import datetime

    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

    from notification_service.core.settings import DispatchSettings
    from notification_service.features.notifications.channels.base import ChannelAdapter


class PhoneResolver(Protocol):
    async def resolve_phone(self, recipient_id: str) -> str | None: ...


def aggregate_status(channel_status: Mapping[str, ChannelStatusEntry]) -> NotificationStatus:
    """``sent`` if any attempted channel succeeded, otherwise ``failed``.

    An empty mapping (nothing attempted) is ``failed``.
    """
    if any(entry.outcome == "sent" for entry in channel_status.values()):
        return NotificationStatus.SENT
    return NotificationStatus.FAILED


def failure_reason(channel_status: Mapping[str, ChannelStatusEntry]) -> str:
    if not channel_status:
        return "No channel attempted"
    return "; ".join(f"{name}: {entry.error or entry.error_kind}" for name, entry in channel_status.items())


def result_from_row(row: Notification) -> DispatchResult:
    """Mirror a stored notification as a DispatchResult."""
    return DispatchResult(
        notification_id=row.id,
        status=row.status,
        channels={name: ChannelStatusEntry.model_validate(entry) for name, entry in (row.channel_status or {}).items()},
        sent_at=row.sent_at,
    )


class NotificationDispatcher:
    """Turns a DispatchRequest into channel attempts and one final status.

    Flow:
        1. Use or mint the id and render the message
        2. Resolve the phone when sms is requested without one (bounded)
        3. Persist the pending row (no-op if the id exists; terminal rows
           short-circuit with their stored state)
        4. Fan out concurrently; every attempt is bounded and isolated
        5. Aggregate, then apply the final status with one conditional update

    Store errors propagate; channel and resolver problems never do.
    """

    def __init__(
        self,
        channels: Mapping[str, ChannelAdapter],
        resolver: PhoneResolver,
        session_factory: async_sessionmaker[AsyncSession],
        settings: DispatchSettings,
        repository: NotificationRepository | None = None,
    ) -> None:
        self._channels = dict(channels)
        self._resolver = resolver
        self._session_factory = session_factory
        self._repository = repository or get_notification_repository()
        self._channel_timeout = settings.channel_timeout
        self._resolver_timeout = settings.resolver_timeout
        self._store_timeout = settings.store_timeout

    @property
    def channels(self) -> Mapping[str, ChannelAdapter]:
        return self._channels

    async def dispatch(self, request: DispatchRequest) -> DispatchResult:
        """Dispatch one notification and return its final stored state.

        Raises:
            RepositoryError: When the status store fails or times out.
        """
        notification_id = request.notification_id or new_notification_id()
        log = get_logger(
            __name__,
            notification_id=notification_id,
            recipient_id=request.recipient_id,
            notification_type=request.type,
        )
        message = build_message(request.type, request.data)

        phone = request.recipient_phone
        if not phone and "sms" in request.channels and "sms" in self._channels:
            phone = await self._resolve_phone(request.recipient_id, log)

        inserted, existing = await self._store(
            self._create_pending(
                {
                    "notification_id": notification_id,
                    "recipient_id": request.recipient_id,
                    "recipient_phone": phone,
                    "type": request.type,
                    "priority": request.priority,
                    "channels": list(request.channels),
                    "message": message,
                    "data": request.data,
                    "status": NotificationStatus.PENDING.value,
                    "channel_status": {},
                    "created_at": utcnow(),
                }
            )
        )
        if inserted:
            notification_created_total.labels(notification_type=request.type, priority=request.priority).inc()
        elif existing is not None and NotificationStatus(existing.status).is_terminal:
            log.info("Notification already in terminal state; skipping fan-out", extra={"status": existing.status})
            notification_dispatched_total.labels(notification_type=request.type, status="duplicate").inc()
            return result_from_row(existing)

        planned = self._plan(request.channels, phone, request.recipient_id, log)
        outcomes = await asyncio.gather(
            *(self._attempt(name, adapter, target, message, request.data, log) for name, adapter, target in planned)
        )

        finished_at = utcnow()
        channel_status = {
            name: _entry_from_outcome(outcome, finished_at)
            for (name, _adapter, _target), outcome in zip(planned, outcomes, strict=True)
        }
        status = aggregate_status(channel_status)
        patch = StatusPatch(
            status=status,
            channel_status={
                name: entry.model_dump(mode="json", by_alias=True, exclude_none=True)
                for name, entry in channel_status.items()
            },
            sent_at=finished_at if status is NotificationStatus.SENT else None,
            failed_at=finished_at if status is NotificationStatus.FAILED else None,
            failure_reason=failure_reason(channel_status) if status is NotificationStatus.FAILED else None,
        )

        applied = await self._store(self._finalize(notification_id, patch))
        if not applied:
            # A concurrent delivery of the same id finished first
            row = await self._store(self._load(notification_id))
            if row is None:
                msg = "Notification disappeared before its final status was written"
                raise RepositoryError(msg, {"notification_id": notification_id})
            notification_dispatched_total.labels(notification_type=request.type, status="duplicate").inc()
            return result_from_row(row)

        notification_dispatched_total.labels(notification_type=request.type, status=status.value).inc()
        log.info(
            f"Notification {status.value}",
            extra={"status": status.value, "channels": {n: e.outcome for n, e in channel_status.items()}},
        )
        return DispatchResult(
            notification_id=notification_id,
            status=status.value,
            channels=channel_status,
            sent_at=patch.sent_at,
        )

    # ------------------------------------------------------------------
    # Recipient resolution
    # ------------------------------------------------------------------

    async def _resolve_phone(self, recipient_id: str, log: ContextBoundLogger) -> str | None:
        try:
            phone = await asyncio.wait_for(self._resolver.resolve_phone(recipient_id), self._resolver_timeout)
        except TimeoutError:
            phone = None
        except Exception:
            log.warning("Recipient resolver raised; continuing without phone", exc_info=True)
            phone = None

        notification_recipient_lookups_total.labels(result="found" if phone else "missing").inc()
        if not phone:
            log.warning("No phone number for recipient; sms will be skipped")
        return phone

    # ------------------------------------------------------------------
    # Fan-out
    # ------------------------------------------------------------------

    def _plan(
        self,
        requested: Sequence[str],
        phone: str | None,
        recipient_id: str,
        log: ContextBoundLogger,
    ) -> list[tuple[str, ChannelAdapter, str]]:
        planned: list[tuple[str, ChannelAdapter, str]] = []
        for name in requested:
            adapter = self._channels.get(name)
            if adapter is None:
                log.debug(f"Channel {name} disabled or unsupported; skipped")
                continue
            if name == "sms":
                if not phone:
                    continue
                planned.append((name, adapter, phone))
            else:
                planned.append((name, adapter, recipient_id))
        return planned

    async def _attempt(
        self,
        name: str,
        adapter: ChannelAdapter,
        target: str,
        message: str,
        payload: dict[str, Any] | None,
        log: ContextBoundLogger,
    ) -> ChannelOutcome:
        """Run one adapter call; always returns an outcome."""
        start_time = time.perf_counter()
        try:
            outcome = await asyncio.wait_for(adapter.send(target, message, payload), self._channel_timeout)
        except TimeoutError:
            outcome = ChannelOutcome.failed(
                FailureKind.TIMEOUT, f"{name} channel timed out after {self._channel_timeout:g}s"
            )
        except Exception as exc:
            log.warning(f"Channel {name} raised unexpectedly: {exc!r}", exc_info=True)
            outcome = ChannelOutcome.failed(FailureKind.PROVIDER_ERROR, str(exc) or type(exc).__name__)

        notification_delivery_duration_seconds.labels(channel=name).observe(time.perf_counter() - start_time)
        if outcome.success:
            notification_delivered_total.labels(channel=name, status="sent").inc()
        else:
            notification_delivered_total.labels(channel=name, status="failed").inc()
            notification_errors_total.labels(
                channel=name,
                error_kind=(outcome.failure_kind or FailureKind.PROVIDER_ERROR).value,
            ).inc()
            log.warning(
                f"Notification failed via {name}: {outcome.error_message}",
                extra={"channel": name, "error_kind": outcome.failure_kind},
            )
        return outcome

    # ------------------------------------------------------------------
    # Status store
    # ------------------------------------------------------------------

    async def _store[R](self, operation: Awaitable[R]) -> R:
        try:
            return await asyncio.wait_for(operation, self._store_timeout)
        except TimeoutError as exc:
            msg = f"Status store did not respond within {self._store_timeout:g}s"
            raise StoreTimeoutError(msg) from exc

    async def _create_pending(self, values: dict[str, Any]) -> tuple[bool, Notification | None]:
        async with self._session_factory() as session:
            inserted = await self._repository.create_if_absent(session, values)
            await session.commit()
            if inserted:
                return True, None
            return False, await self._repository.get(session, values["notification_id"])

    async def _finalize(self, notification_id: str, patch: StatusPatch) -> bool:
        async with self._session_factory() as session:
            applied = await self._repository.apply_final_status(session, notification_id, patch)
            await session.commit()
            return applied

    async def _load(self, notification_id: str) -> Notification | None:
        async with self._session_factory() as session:
            return await self._repository.get(session, notification_id)


def _entry_from_outcome(outcome: ChannelOutcome, timestamp: datetime) -> ChannelStatusEntry:
    if outcome.success:
        return ChannelStatusEntry(outcome="sent", timestamp=timestamp, reference=outcome.reference)
    return ChannelStatusEntry(
        outcome="failed",
        timestamp=timestamp,
        error=outcome.error_message,
        error_kind=outcome.failure_kind.value if outcome.failure_kind else FailureKind.PROVIDER_ERROR.value,
    )
