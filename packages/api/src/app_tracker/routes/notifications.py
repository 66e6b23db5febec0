# This project was developed with assistance from AI tools.
"""Notification routes and the realtime notification feed.

The WebSocket at ``/api/notifications/ws?token=<jwt>`` pushes the caller's
recent notifications and unread count on connect, then again after every
change to one of their notifications. Each push is a full refetch, so the
most recent frame is always authoritative.
"""

import asyncio
import logging

from db import get_db
from fastapi import APIRouter, Depends, HTTPException, Query, WebSocket, WebSocketDisconnect, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import settings
from ..middleware.auth import (
    ALL_ROLES,
    AuthenticationError,
    CurrentUser,
    authenticate_token,
    require_roles,
)
from ..schemas.auth import UserContext
from ..schemas.notification import (
    MarkAllReadResponse,
    NotificationFeedMessage,
    NotificationListResponse,
    NotificationResponse,
)
from ..services import notification as notification_service
from ..services.realtime import get_notification_hub

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get(
    "/",
    response_model=NotificationListResponse,
    dependencies=[Depends(require_roles(*ALL_ROLES))],
)
async def list_notifications(
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
    limit: int = Query(default=settings.NOTIFICATIONS_PAGE_SIZE, ge=1, le=100),
) -> NotificationListResponse:
    """The caller's most recent notifications with the unread badge count."""
    notifications = await notification_service.list_notifications(
        session, user.user_id, limit=limit
    )
    return NotificationListResponse(
        data=[NotificationResponse.model_validate(n) for n in notifications],
        unread_count=notification_service.count_unread(notifications),
    )


@router.post(
    "/read-all",
    response_model=MarkAllReadResponse,
    dependencies=[Depends(require_roles(*ALL_ROLES))],
)
async def mark_all_read(
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> MarkAllReadResponse:
    """Mark every unread notification of the caller as read."""
    updated = await notification_service.mark_all_read(session, user.user_id)
    return MarkAllReadResponse(updated=updated)


@router.post(
    "/{notification_id}/read",
    response_model=NotificationResponse,
    dependencies=[Depends(require_roles(*ALL_ROLES))],
)
async def mark_read(
    notification_id: int,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> NotificationResponse:
    """Mark one of the caller's notifications as read."""
    notification = await notification_service.mark_read(session, user.user_id, notification_id)
    if notification is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Notification not found",
        )
    return NotificationResponse.model_validate(notification)


# ---------------------------------------------------------------------------
# Realtime feed
# ---------------------------------------------------------------------------


async def authenticate_websocket(ws: WebSocket, session: AsyncSession) -> UserContext | None:
    """Validate JWT from ``?token=<jwt>`` on an already-accepted WebSocket.

    Returns ``None`` (and closes the WS) when authentication fails.
    """
    try:
        return await authenticate_token(session, ws.query_params.get("token"))
    except AuthenticationError as exc:
        logger.warning("WebSocket auth failed: %s", exc.message)
        code = 1013 if exc.unavailable else 4001
        await ws.close(code=code, reason=exc.message)
        return None


async def _snapshot(ws: WebSocket, user_id: str, event: str) -> NotificationFeedMessage:
    """Refetch the caller's notifications in a short-lived session."""
    db_factory = ws.app.dependency_overrides.get(get_db, get_db)
    notifications = []
    async for session in db_factory():
        notifications = await notification_service.list_notifications(session, user_id)
    return NotificationFeedMessage(
        event=event,
        unread_count=notification_service.count_unread(notifications),
        data=[NotificationResponse.model_validate(n) for n in notifications],
    )


async def _drain_client(ws: WebSocket) -> None:
    """Consume client frames until disconnect. Client messages are ignored."""
    while True:
        await ws.receive_text()


@router.websocket("/ws")
async def notifications_feed(ws: WebSocket):
    """Push notification snapshots to the authenticated user."""
    await ws.accept()

    db_factory = ws.app.dependency_overrides.get(get_db, get_db)
    user = None
    async for session in db_factory():
        user = await authenticate_websocket(ws, session)
    if user is None:
        return

    hub = get_notification_hub()
    async with hub.subscription(user.user_id) as sub:
        logger.info("Notification feed opened for %s", user.user_id)

        async def _pump() -> None:
            frame = await _snapshot(ws, user.user_id, "snapshot")
            await ws.send_json(frame.model_dump(mode="json"))
            while True:
                change = await sub.get()
                frame = await _snapshot(ws, user.user_id, change.event)
                await ws.send_json(frame.model_dump(mode="json"))

        pump = asyncio.create_task(_pump())
        drain = asyncio.create_task(_drain_client(ws))
        try:
            done, pending = await asyncio.wait({pump, drain}, return_when=asyncio.FIRST_COMPLETED)
            for task in pending:
                task.cancel()
            for task in done:
                exc = task.exception()
                if exc is not None and not isinstance(exc, WebSocketDisconnect):
                    logger.error("Notification feed for %s failed: %s", user.user_id, exc)
        finally:
            pump.cancel()
            drain.cancel()
            await asyncio.gather(pump, drain, return_exceptions=True)
            logger.info("Notification feed closed for %s", user.user_id)
