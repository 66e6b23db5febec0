# This project was developed with assistance from AI tools.
"""User management and dashboard counts for admins."""

import logging

from db import Application, Document, Profile
from db.enums import ActivityAction, ApplicationStatus, UserRole
from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..schemas.auth import UserContext
from ..services.activity import write_activity
from ..services.storage import get_storage_service

logger = logging.getLogger(__name__)


class SelfDeletionError(Exception):
    """Raised when an admin tries to delete their own profile."""


async def list_users(
    session: AsyncSession,
    *,
    role: UserRole | None = None,
) -> list[Profile]:
    """Non-admin profiles, newest first."""
    stmt = select(Profile).where(Profile.role != UserRole.ADMIN)
    if role is not None:
        stmt = stmt.where(Profile.role == role)
    stmt = stmt.order_by(Profile.created_at.desc(), Profile.id.desc())
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def list_reviewers(session: AsyncSession) -> list[Profile]:
    stmt = (
        select(Profile)
        .where(Profile.role == UserRole.REVIEWER)
        .order_by(Profile.full_name.asc())
    )
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def update_user(
    session: AsyncSession,
    actor: UserContext,
    user_id: str,
    *,
    full_name: str | None = None,
    email: str | None = None,
    role: UserRole | None = None,
) -> Profile | None:
    """Edit a profile. Role changes apply on the user's next request."""
    result = await session.execute(select(Profile).where(Profile.user_id == user_id))
    profile = result.scalar_one_or_none()
    if profile is None:
        return None

    changes = {}
    for field, value in (("full_name", full_name), ("email", email), ("role", role)):
        if value is not None and getattr(profile, field) != value:
            changes[field] = value

    if changes:
        for field, value in changes.items():
            setattr(profile, field, value)
        await write_activity(
            session,
            user_id=actor.user_id,
            action=ActivityAction.USER_UPDATED,
            resource_type="profile",
            resource_id=user_id,
            details={
                field: value.value if isinstance(value, UserRole) else value
                for field, value in changes.items()
            },
        )
        await session.commit()
        await session.refresh(profile)
        logger.info("Profile %s updated by %s: %s", user_id, actor.user_id, sorted(changes))

    return profile


async def delete_user(
    session: AsyncSession,
    actor: UserContext,
    user_id: str,
) -> bool:
    """Delete a profile and everything that cascades from it.

    The user's applications go with the profile, so their stored document
    files are removed afterwards on a best-effort basis.
    """
    if user_id == actor.user_id:
        raise SelfDeletionError("You cannot delete your own account")

    result = await session.execute(select(Profile).where(Profile.user_id == user_id))
    profile = result.scalar_one_or_none()
    if profile is None:
        return False

    email = profile.email
    paths_result = await session.execute(
        select(Document.storage_path)
        .join(Document.application)
        .where(Application.applicant_id == user_id)
    )
    storage_paths = list(paths_result.scalars().all())

    await session.execute(delete(Profile).where(Profile.user_id == user_id))
    await write_activity(
        session,
        user_id=actor.user_id,
        action=ActivityAction.USER_DELETED,
        resource_type="profile",
        resource_id=user_id,
        details={"email": email},
    )
    await session.commit()

    if storage_paths:
        failed = await get_storage_service().delete_files(storage_paths)
        if failed:
            logger.warning("User %s deleted; %d stored files left behind", user_id, len(failed))

    logger.info("Profile %s deleted by %s", user_id, actor.user_id)
    return True


async def get_stats(session: AsyncSession) -> dict:
    """Counts for the admin dashboard cards."""
    status_result = await session.execute(
        select(Application.status, func.count(Application.id)).group_by(Application.status)
    )
    by_status = {s.value: 0 for s in ApplicationStatus}
    for status, count in status_result.all():
        by_status[status.value] = count

    users = (
        await session.execute(
            select(func.count(Profile.id)).where(Profile.role != UserRole.ADMIN)
        )
    ).scalar() or 0
    reviewers = (
        await session.execute(
            select(func.count(Profile.id)).where(Profile.role == UserRole.REVIEWER)
        )
    ).scalar() or 0

    return {
        "total_applications": sum(by_status.values()),
        "by_status": by_status,
        "total_users": users,
        "total_reviewers": reviewers,
    }
