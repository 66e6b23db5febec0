# This project was developed with assistance from AI tools.
"""Activity log service.

Writes append-only activity entries alongside the change they describe.
Entries are added to the caller's session and flushed, never committed
here, so an activity row exists only if the surrounding change commits.
"""

import logging

from db import ActivityLog
from db.enums import ActivityAction
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)

COMMENT_PREVIEW_CHARS = 100


async def write_activity(
    session: AsyncSession,
    *,
    user_id: str | None,
    action: ActivityAction,
    resource_type: str,
    resource_id: int | str | None = None,
    details: dict | None = None,
) -> ActivityLog:
    """Record a single user action.

    Args:
        session: Database session (the caller commits).
        user_id: Acting user.
        action: What happened.
        resource_type: Kind of resource acted on (``application``, ``profile``).
        resource_id: Identifier of that resource.
        details: Arbitrary JSON-serializable payload.

    Returns:
        The pending ActivityLog row.
    """
    entry = ActivityLog(
        user_id=user_id,
        action=action.value,
        resource_type=resource_type,
        resource_id=str(resource_id) if resource_id is not None else None,
        details=details,
    )
    session.add(entry)
    await session.flush()
    logger.debug("Activity %s on %s/%s by %s", action.value, resource_type, resource_id, user_id)
    return entry


async def list_activity(
    session: AsyncSession,
    *,
    resource_type: str | None = None,
    resource_id: str | None = None,
    user_id: str | None = None,
    offset: int = 0,
    limit: int = 50,
) -> tuple[list[ActivityLog], int]:
    """Return activity entries newest first, with the unpaginated total."""
    filters = []
    if resource_type is not None:
        filters.append(ActivityLog.resource_type == resource_type)
    if resource_id is not None:
        filters.append(ActivityLog.resource_id == resource_id)
    if user_id is not None:
        filters.append(ActivityLog.user_id == user_id)

    count_stmt = select(func.count(ActivityLog.id)).where(*filters)
    total = (await session.execute(count_stmt)).scalar() or 0

    stmt = (
        select(ActivityLog)
        .where(*filters)
        .order_by(ActivityLog.created_at.desc(), ActivityLog.id.desc())
        .offset(offset)
        .limit(limit)
    )
    result = await session.execute(stmt)
    return list(result.scalars().all()), total
