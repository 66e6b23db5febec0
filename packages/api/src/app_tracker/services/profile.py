# This project was developed with assistance from AI tools.
"""Profile service: first-login provisioning, self-service edits, avatars.

The ``profiles`` row is authoritative for a user's role. The identity
provider only seeds it on first login, so role changes made by an admin
take effect on the user's next request.
"""

import logging
import os
import time

from db import Profile
from db.enums import UserRole
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import settings
from ..services.storage import get_storage_service

logger = logging.getLogger(__name__)


class AvatarUploadError(Exception):
    """Raised when an avatar fails type or size validation."""


async def get_profile(session: AsyncSession, user_id: str) -> Profile | None:
    stmt = select(Profile).where(Profile.user_id == user_id)
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def ensure_profile(
    session: AsyncSession,
    *,
    user_id: str,
    email: str,
    full_name: str,
    role: UserRole | None = None,
) -> Profile:
    """Return the caller's profile, creating it on first login.

    ``role`` comes from the token and is only used when the row is created.
    """
    profile = await get_profile(session, user_id)
    if profile is not None:
        return profile

    profile = Profile(
        user_id=user_id,
        email=email,
        full_name=full_name,
        role=role or UserRole.APPLICANT,
    )
    session.add(profile)
    try:
        await session.commit()
    except IntegrityError:
        # Concurrent first request created the row
        await session.rollback()
        profile = await get_profile(session, user_id)
        if profile is None:
            raise
        return profile

    logger.info("Provisioned profile user=%s role=%s", user_id, profile.role.value)
    await session.refresh(profile)
    return profile


async def update_own_profile(
    session: AsyncSession,
    user_id: str,
    *,
    full_name: str,
) -> Profile | None:
    profile = await get_profile(session, user_id)
    if profile is None:
        return None
    profile.full_name = full_name
    await session.commit()
    await session.refresh(profile)
    return profile


def _validate_avatar(content_type: str, data: bytes) -> None:
    if not content_type.startswith("image/"):
        raise AvatarUploadError("Please select an image file (JPG, PNG, GIF, etc.)")
    max_bytes = settings.AVATAR_MAX_SIZE_MB * 1024 * 1024
    if len(data) > max_bytes:
        raise AvatarUploadError(
            f"Please select an image smaller than {settings.AVATAR_MAX_SIZE_MB}MB"
        )


def build_avatar_key(user_id: str, filename: str) -> str:
    """``{user_id}/avatar-{unix_ms}.{ext}``; extension falls back to ``img``."""
    ext = os.path.splitext(os.path.basename(filename))[1].lstrip(".").lower() or "img"
    return f"{user_id}/avatar-{int(time.time() * 1000)}.{ext}"


async def _remove_current_avatar(profile: Profile) -> None:
    """Delete the stored avatar object, if the URL points into the avatars bucket."""
    if not profile.avatar_url:
        return
    storage = get_storage_service()
    old_key = f"{profile.user_id}/{profile.avatar_url.rsplit('/', 1)[-1]}"
    try:
        await storage.delete_file(old_key, bucket=settings.AVATARS_BUCKET)
    except Exception:
        logger.warning("Failed to remove old avatar %s", old_key, exc_info=True)


async def set_avatar(
    session: AsyncSession,
    user_id: str,
    *,
    filename: str,
    content_type: str,
    data: bytes,
) -> Profile | None:
    """Replace the caller's avatar and return the updated profile."""
    _validate_avatar(content_type, data)

    profile = await get_profile(session, user_id)
    if profile is None:
        return None

    await _remove_current_avatar(profile)

    storage = get_storage_service()
    key = build_avatar_key(user_id, filename)
    await storage.upload_file(data, key, content_type, bucket=settings.AVATARS_BUCKET)

    profile.avatar_url = storage.get_public_url(key, bucket=settings.AVATARS_BUCKET)
    await session.commit()
    await session.refresh(profile)
    return profile


async def clear_avatar(session: AsyncSession, user_id: str) -> Profile | None:
    profile = await get_profile(session, user_id)
    if profile is None:
        return None

    await _remove_current_avatar(profile)
    profile.avatar_url = None
    await session.commit()
    await session.refresh(profile)
    return profile
