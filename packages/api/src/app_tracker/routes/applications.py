# This project was developed with assistance from AI tools.
"""Application CRUD routes with RBAC enforcement."""

import logging

from db import Application, get_db
from db.enums import ApplicationStatus, UserRole
from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..middleware.auth import ALL_ROLES, CurrentUser, require_roles
from ..schemas import Pagination
from ..schemas.application import (
    ApplicationListResponse,
    ApplicationResponse,
    ApplicationUpdate,
    ReviewerAssignRequest,
    StatusUpdateRequest,
)
from ..services import application as app_service
from ..services.application import (
    ApplicationLockedError,
    InvalidReviewerError,
    InvalidTransitionError,
    ReviewerNotFoundError,
    StaleUpdateError,
)
from ..services.document import FileTooLargeError, FileUpload, UnsupportedFileTypeError
from ..services.storage import StorageError

logger = logging.getLogger(__name__)

router = APIRouter()


def _build_app_response(app: Application) -> ApplicationResponse:
    """Build ApplicationResponse from ORM object, flattening display names."""
    return ApplicationResponse(
        id=app.id,
        title=app.title,
        description=app.description,
        status=app.status,
        applicant_id=app.applicant_id,
        assigned_reviewer_id=app.assigned_reviewer_id,
        applicant_name=app.applicant.full_name if app.applicant else None,
        reviewer_name=app.assigned_reviewer.full_name if app.assigned_reviewer else None,
        created_at=app.created_at,
        updated_at=app.updated_at,
    )


def _not_found() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail="Application not found",
    )


@router.get(
    "/",
    response_model=ApplicationListResponse,
    dependencies=[Depends(require_roles(*ALL_ROLES))],
)
async def list_applications(
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=20, ge=1, le=100),
    status_filter: ApplicationStatus | None = Query(default=None, alias="status"),
    search: str | None = Query(default=None, max_length=200),
) -> ApplicationListResponse:
    """List applications visible to the current user's role and data scope."""
    applications, total = await app_service.list_applications(
        session,
        user,
        offset=offset,
        limit=limit,
        status=status_filter,
        search=search,
    )
    return ApplicationListResponse(
        data=[_build_app_response(app) for app in applications],
        pagination=Pagination(
            total=total,
            offset=offset,
            limit=limit,
            has_more=(offset + limit < total),
        ),
    )


@router.get(
    "/{application_id}",
    response_model=ApplicationResponse,
    dependencies=[Depends(require_roles(*ALL_ROLES))],
)
async def get_application(
    application_id: int,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> ApplicationResponse:
    """Get a single application. Returns 404 for out-of-scope resources."""
    app = await app_service.get_application(session, user, application_id)
    if app is None:
        raise _not_found()
    return _build_app_response(app)


@router.post(
    "/",
    response_model=ApplicationResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_roles(UserRole.APPLICANT, UserRole.ADMIN))],
)
async def create_application(
    user: CurrentUser,
    title: str = Form(..., max_length=500),
    description: str = Form(...),
    files: list[UploadFile] | None = File(default=None),
    session: AsyncSession = Depends(get_db),
) -> ApplicationResponse:
    """Submit an application with its supporting documents in one request."""
    title = title.strip()
    description = description.strip()
    if not title or not description:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="Please fill in all required fields",
        )

    uploads = [
        FileUpload(
            filename=f.filename or "document",
            content_type=f.content_type or "application/octet-stream",
            data=await f.read(),
        )
        for f in files or []
    ]

    try:
        app = await app_service.create_application(
            session,
            user,
            title=title,
            description=description,
            files=uploads,
        )
    except UnsupportedFileTypeError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(exc),
        ) from exc
    except FileTooLargeError as exc:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=str(exc),
        ) from exc
    except StorageError as exc:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="File storage failed; the application was not created",
        ) from exc

    return _build_app_response(app)


@router.patch(
    "/{application_id}",
    response_model=ApplicationResponse,
    dependencies=[Depends(require_roles(UserRole.APPLICANT, UserRole.ADMIN))],
)
async def update_application(
    application_id: int,
    body: ApplicationUpdate,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> ApplicationResponse:
    """Edit title/description. Applicants can only edit pending applications."""
    try:
        app = await app_service.update_application(
            session,
            user,
            application_id,
            **body.model_dump(exclude_unset=True),
        )
    except ApplicationLockedError as exc:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=str(exc),
        ) from exc
    if app is None:
        raise _not_found()
    return _build_app_response(app)


@router.patch(
    "/{application_id}/status",
    response_model=ApplicationResponse,
    dependencies=[Depends(require_roles(UserRole.REVIEWER, UserRole.ADMIN))],
)
async def update_status(
    application_id: int,
    body: StatusUpdateRequest,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> ApplicationResponse:
    """Change status. Reviewers may only act on applications assigned to them."""
    try:
        app = await app_service.transition_status(
            session,
            user,
            application_id,
            body.status,
            expected_updated_at=body.expected_updated_at,
        )
    except StaleUpdateError as exc:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=str(exc),
        ) from exc
    except InvalidTransitionError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(exc),
        ) from exc
    if app is None:
        raise _not_found()
    return _build_app_response(app)


@router.patch(
    "/{application_id}/reviewer",
    response_model=ApplicationResponse,
    dependencies=[Depends(require_roles(UserRole.ADMIN))],
)
async def assign_reviewer(
    application_id: int,
    body: ReviewerAssignRequest,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> ApplicationResponse:
    """Assign or clear the reviewer of an application."""
    try:
        app = await app_service.assign_reviewer(session, user, application_id, body.reviewer_id)
    except ReviewerNotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(exc),
        ) from exc
    except InvalidReviewerError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(exc),
        ) from exc
    if app is None:
        raise _not_found()
    return _build_app_response(app)


@router.delete(
    "/{application_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_roles(*ALL_ROLES))],
)
async def delete_application(
    application_id: int,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> None:
    """Delete an application, its documents and comments."""
    deleted = await app_service.delete_application(session, user, application_id)
    if not deleted:
        raise _not_found()
