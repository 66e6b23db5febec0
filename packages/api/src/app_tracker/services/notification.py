# This project was developed with assistance from AI tools.
"""Notification service.

Rows are written in the caller's transaction; change events go to the
NotificationHub only after the commit so a subscriber never refetches
before the row is visible.
"""

import logging

from db import Notification
from db.enums import NotificationType
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import settings
from .realtime import ChangeEvent, get_notification_hub

logger = logging.getLogger(__name__)


async def list_notifications(
    session: AsyncSession,
    user_id: str,
    *,
    limit: int | None = None,
) -> list[Notification]:
    """Most recent notifications for a user, newest first."""
    stmt = (
        select(Notification)
        .where(Notification.user_id == user_id)
        .order_by(Notification.created_at.desc(), Notification.id.desc())
        .limit(limit or settings.NOTIFICATIONS_PAGE_SIZE)
    )
    result = await session.execute(stmt)
    return list(result.scalars().all())


def count_unread(notifications: list[Notification]) -> int:
    """Badge count: unread items within an already-fetched list."""
    return sum(1 for n in notifications if not n.is_read)


async def create_notification(
    session: AsyncSession,
    *,
    user_id: str,
    title: str,
    message: str,
    type: NotificationType = NotificationType.INFO,
    application_id: int | None = None,
) -> Notification:
    """Add a notification to the session. The caller commits, then publishes."""
    notification = Notification(
        user_id=user_id,
        title=title,
        message=message,
        type=type,
        is_read=False,
        application_id=application_id,
    )
    session.add(notification)
    await session.flush()
    return notification


def publish_created(notifications: list[Notification]) -> None:
    """Announce committed inserts to connected subscribers."""
    hub = get_notification_hub()
    for notification in notifications:
        hub.publish(
            ChangeEvent(
                user_id=notification.user_id, event="INSERT", notification_id=notification.id
            )
        )


async def mark_read(
    session: AsyncSession,
    user_id: str,
    notification_id: int,
) -> Notification | None:
    """Mark one of the caller's notifications read. None if not theirs."""
    stmt = select(Notification).where(
        Notification.id == notification_id,
        Notification.user_id == user_id,
    )
    result = await session.execute(stmt)
    notification = result.scalar_one_or_none()
    if notification is None:
        return None

    if not notification.is_read:
        notification.is_read = True
        await session.commit()
        get_notification_hub().publish(
            ChangeEvent(user_id=user_id, event="UPDATE", notification_id=notification_id)
        )
    return notification


async def mark_all_read(session: AsyncSession, user_id: str) -> int:
    """Mark every unread notification of the caller read. Returns the count."""
    stmt = (
        update(Notification)
        .where(Notification.user_id == user_id, Notification.is_read.is_(False))
        .values(is_read=True)
    )
    result = await session.execute(stmt)
    await session.commit()

    updated = result.rowcount or 0
    if updated:
        get_notification_hub().publish(ChangeEvent(user_id=user_id, event="UPDATE"))
    logger.debug("Marked %d notifications read for %s", updated, user_id)
    return updated
