# This project was developed with assistance from AI tools.
"""Review comments on applications."""

import logging

from db import Application, ApplicationComment
from db.enums import ActivityAction, NotificationType
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload

from ..schemas.auth import UserContext
from ..services.activity import COMMENT_PREVIEW_CHARS, write_activity
from ..services.notification import create_notification, publish_created
from ..services.scope import apply_data_scope

logger = logging.getLogger(__name__)


class EmptyCommentError(ValueError):
    """Raised when a comment is blank after trimming."""


async def _get_visible_application(
    session: AsyncSession,
    user: UserContext,
    application_id: int,
) -> Application | None:
    stmt = select(Application).where(Application.id == application_id)
    stmt = apply_data_scope(stmt, user.data_scope, user)
    result = await session.execute(stmt)
    return result.unique().scalar_one_or_none()


async def list_comments(
    session: AsyncSession,
    user: UserContext,
    application_id: int,
) -> list[ApplicationComment] | None:
    """Comments oldest first with the commenter loaded. None if out of scope."""
    if await _get_visible_application(session, user, application_id) is None:
        return None

    stmt = (
        select(ApplicationComment)
        .options(joinedload(ApplicationComment.commenter))
        .where(ApplicationComment.application_id == application_id)
        .order_by(ApplicationComment.created_at.asc(), ApplicationComment.id.asc())
    )
    result = await session.execute(stmt)
    return list(result.unique().scalars().all())


async def add_comment(
    session: AsyncSession,
    user: UserContext,
    application_id: int,
    text: str,
) -> ApplicationComment | None:
    """Add a comment and notify the applicant.

    Raises EmptyCommentError when ``text`` is blank. Returns None if the
    application is not visible to the commenter.
    """
    body = (text or "").strip()
    if not body:
        raise EmptyCommentError("Comment cannot be empty")

    application = await _get_visible_application(session, user, application_id)
    if application is None:
        return None

    comment = ApplicationComment(
        application_id=application_id,
        commenter_id=user.user_id,
        comment=body,
    )
    session.add(comment)
    await session.flush()

    await write_activity(
        session,
        user_id=user.user_id,
        action=ActivityAction.COMMENT_ADDED,
        resource_type="application",
        resource_id=application_id,
        details={"comment_preview": body[:COMMENT_PREVIEW_CHARS]},
    )

    notifications = []
    if application.applicant_id != user.user_id:
        notifications.append(
            await create_notification(
                session,
                user_id=application.applicant_id,
                title="New comment on your application",
                message=f'{user.name or "A reviewer"} commented on "{application.title}".',
                type=NotificationType.COMMENT,
                application_id=application_id,
            )
        )
    comment_id = comment.id  # capture before commit
    await session.commit()
    publish_created(notifications)

    stmt = (
        select(ApplicationComment)
        .options(joinedload(ApplicationComment.commenter))
        .where(ApplicationComment.id == comment_id)
    )
    result = await session.execute(stmt)
    return result.unique().scalar_one()
