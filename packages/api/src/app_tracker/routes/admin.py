# This project was developed with assistance from AI tools.
"""Admin endpoints for user management, dashboard stats and activity queries."""

from db import get_db
from db.enums import UserRole
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..middleware.auth import CurrentUser, require_roles
from ..schemas import Pagination
from ..schemas.admin import ActivityLogItem, ActivityLogResponse, StatsResponse
from ..schemas.analytics import MonthlyVolumeResponse
from ..schemas.profile import AdminUserUpdate, ProfileResponse, UserListResponse
from ..services import admin as admin_service
from ..services.activity import list_activity
from ..services.admin import SelfDeletionError
from ..services.analytics import get_monthly_volume

router = APIRouter(dependencies=[Depends(require_roles(UserRole.ADMIN))])


@router.get("/users", response_model=UserListResponse)
async def list_users(
    role: UserRole | None = None,
    session: AsyncSession = Depends(get_db),
) -> UserListResponse:
    """All non-admin users, newest first."""
    users = await admin_service.list_users(session, role=role)
    return UserListResponse(
        data=[ProfileResponse.model_validate(u) for u in users],
        count=len(users),
    )


@router.get("/reviewers", response_model=UserListResponse)
async def list_reviewers(
    session: AsyncSession = Depends(get_db),
) -> UserListResponse:
    """Reviewers available for assignment."""
    reviewers = await admin_service.list_reviewers(session)
    return UserListResponse(
        data=[ProfileResponse.model_validate(r) for r in reviewers],
        count=len(reviewers),
    )


@router.patch("/users/{user_id}", response_model=ProfileResponse)
async def update_user(
    user_id: str,
    body: AdminUserUpdate,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> ProfileResponse:
    """Edit a user's name, email or role."""
    profile = await admin_service.update_user(
        session,
        user,
        user_id,
        **body.model_dump(exclude_unset=True),
    )
    if profile is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found",
        )
    return ProfileResponse.model_validate(profile)


@router.delete("/users/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_user(
    user_id: str,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> None:
    """Delete a user and everything they own."""
    try:
        deleted = await admin_service.delete_user(session, user, user_id)
    except SelfDeletionError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(exc),
        ) from exc
    if not deleted:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found",
        )


@router.get("/stats", response_model=StatsResponse)
async def get_stats(
    session: AsyncSession = Depends(get_db),
) -> StatsResponse:
    """Application counts per status plus user and reviewer counts."""
    return StatsResponse(**await admin_service.get_stats(session))


@router.get("/analytics/monthly", response_model=MonthlyVolumeResponse)
async def monthly_volume(
    session: AsyncSession = Depends(get_db),
) -> MonthlyVolumeResponse:
    """Applications per creation month, oldest first."""
    return await get_monthly_volume(session)


@router.get("/activity", response_model=ActivityLogResponse)
async def get_activity(
    resource_type: str | None = None,
    resource_id: str | None = None,
    user_id: str | None = None,
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=200),
    session: AsyncSession = Depends(get_db),
) -> ActivityLogResponse:
    """Query the activity log, newest first."""
    entries, total = await list_activity(
        session,
        resource_type=resource_type,
        resource_id=resource_id,
        user_id=user_id,
        offset=offset,
        limit=limit,
    )
    return ActivityLogResponse(
        data=[ActivityLogItem.model_validate(e) for e in entries],
        pagination=Pagination(
            total=total,
            offset=offset,
            limit=limit,
            has_more=(offset + limit < total),
        ),
    )
