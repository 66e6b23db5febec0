# This project was developed with assistance from AI tools.
"""Self-service profile routes."""

import logging

from db import get_db
from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..middleware.auth import ALL_ROLES, CurrentUser, require_roles
from ..schemas.profile import ProfileResponse, ProfileUpdate
from ..services import profile as profile_service
from ..services.profile import AvatarUploadError
from ..services.storage import StorageError

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(require_roles(*ALL_ROLES))])


def _not_found() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail="Profile not found",
    )


@router.get("/me", response_model=ProfileResponse)
async def get_my_profile(
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> ProfileResponse:
    profile = await profile_service.get_profile(session, user.user_id)
    if profile is None:
        raise _not_found()
    return ProfileResponse.model_validate(profile)


@router.patch("/me", response_model=ProfileResponse)
async def update_my_profile(
    body: ProfileUpdate,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> ProfileResponse:
    """Change the caller's display name."""
    profile = await profile_service.update_own_profile(
        session, user.user_id, full_name=body.full_name
    )
    if profile is None:
        raise _not_found()
    return ProfileResponse.model_validate(profile)


@router.put("/me/avatar", response_model=ProfileResponse)
async def upload_avatar(
    user: CurrentUser,
    file: UploadFile = File(...),
    session: AsyncSession = Depends(get_db),
) -> ProfileResponse:
    """Replace the caller's avatar image."""
    data = await file.read()
    try:
        profile = await profile_service.set_avatar(
            session,
            user.user_id,
            filename=file.filename or "avatar",
            content_type=file.content_type or "",
            data=data,
        )
    except AvatarUploadError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(exc),
        ) from exc
    except StorageError as exc:
        logger.error("Avatar upload failed for %s: %s", user.user_id, exc)
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Failed to upload profile picture",
        ) from exc
    if profile is None:
        raise _not_found()
    return ProfileResponse.model_validate(profile)


@router.delete("/me/avatar", response_model=ProfileResponse)
async def remove_avatar(
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> ProfileResponse:
    """Remove the caller's avatar image."""
    profile = await profile_service.clear_avatar(session, user.user_id)
    if profile is None:
        raise _not_found()
    return ProfileResponse.model_validate(profile)
