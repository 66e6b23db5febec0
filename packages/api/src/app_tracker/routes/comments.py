# This project was developed with assistance from AI tools.
"""Review comment routes."""

from db import ApplicationComment, get_db
from db.enums import UserRole
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..middleware.auth import ALL_ROLES, CurrentUser, require_roles
from ..schemas.comment import CommentCreate, CommentListResponse, CommentResponse
from ..services import comment as comment_service
from ..services.comment import EmptyCommentError

router = APIRouter()


def _build_comment_response(comment: ApplicationComment) -> CommentResponse:
    commenter = comment.commenter
    return CommentResponse(
        id=comment.id,
        application_id=comment.application_id,
        commenter_id=comment.commenter_id,
        commenter_name=commenter.full_name if commenter else None,
        commenter_role=commenter.role if commenter else None,
        comment=comment.comment,
        created_at=comment.created_at,
    )


@router.get(
    "/{application_id}/comments",
    response_model=CommentListResponse,
    dependencies=[Depends(require_roles(*ALL_ROLES))],
)
async def list_comments(
    application_id: int,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> CommentListResponse:
    """Comments on a visible application, oldest first."""
    comments = await comment_service.list_comments(session, user, application_id)
    if comments is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Application not found",
        )
    items = [_build_comment_response(c) for c in comments]
    return CommentListResponse(data=items, count=len(items))


@router.post(
    "/{application_id}/comments",
    response_model=CommentResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_roles(UserRole.REVIEWER, UserRole.ADMIN))],
)
async def add_comment(
    application_id: int,
    body: CommentCreate,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> CommentResponse:
    """Comment on an application. Reviewers only on their assigned ones."""
    try:
        comment = await comment_service.add_comment(session, user, application_id, body.comment)
    except EmptyCommentError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(exc),
        ) from exc
    if comment is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Application not found",
        )
    return _build_comment_response(comment)
