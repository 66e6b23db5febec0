# This project was developed with assistance from AI tools.
"""Application service with role-based data scope filtering.

Every query is filtered through the caller's DataScope so that applicants
see only their own applications, reviewers see only assigned ones, and
admins see all.
"""

import logging
from datetime import UTC, datetime

from db import Application, Document, Profile
from db.enums import ActivityAction, ApplicationStatus, NotificationType, UserRole
from sqlalchemy import delete, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased, joinedload

from ..schemas.auth import UserContext
from ..services.activity import write_activity
from ..services.document import FileUpload, validate_upload
from ..services.notification import create_notification, publish_created
from ..services.scope import apply_data_scope
from ..services.storage import get_storage_service

logger = logging.getLogger(__name__)


class InvalidTransitionError(ValueError):
    """Raised when an application status transition is not allowed."""

    pass


class StaleUpdateError(Exception):
    """Raised when the caller's ``expected_updated_at`` no longer matches."""

    def __init__(self, current: datetime):
        self.current = current
        super().__init__(
            f"Application was modified at {current.isoformat()}; reload and try again."
        )


class ApplicationLockedError(Exception):
    """Raised when an applicant edits an application that left ``pending``."""


class ReviewerNotFoundError(LookupError):
    """Raised when the reviewer to assign has no profile."""


class InvalidReviewerError(ValueError):
    """Raised when the profile to assign is not a reviewer."""


def _as_utc(value: datetime) -> datetime:
    """Treat a naive timestamp as UTC, matching the stored timestamptz values."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def _with_people(stmt):
    return stmt.options(
        joinedload(Application.applicant),
        joinedload(Application.assigned_reviewer),
    )


def _apply_filters(stmt, status: ApplicationStatus | None, search: str | None, applicant):
    """Apply optional WHERE clauses for the status and search filters."""
    if status is not None:
        stmt = stmt.where(Application.status == status)
    if search:
        pattern = f"%{search.strip()}%"
        stmt = stmt.outerjoin(applicant, applicant.user_id == Application.applicant_id).where(
            or_(Application.title.ilike(pattern), applicant.full_name.ilike(pattern))
        )
    return stmt


async def list_applications(
    session: AsyncSession,
    user: UserContext,
    *,
    offset: int = 0,
    limit: int = 20,
    status: ApplicationStatus | None = None,
    search: str | None = None,
) -> tuple[list[Application], int]:
    """Return applications visible to the current user, newest first.

    Args:
        status: Only return applications in this status.
        search: Case-insensitive substring of the title or applicant name.
    """
    applicant = aliased(Profile)

    count_stmt = select(func.count(Application.id))
    count_stmt = apply_data_scope(count_stmt, user.data_scope, user)
    count_stmt = _apply_filters(count_stmt, status, search, applicant)
    total = (await session.execute(count_stmt)).scalar() or 0

    stmt = (
        _with_people(select(Application))
        .order_by(Application.created_at.desc(), Application.id.desc())
        .offset(offset)
        .limit(limit)
    )
    stmt = apply_data_scope(stmt, user.data_scope, user)
    stmt = _apply_filters(stmt, status, search, applicant)
    result = await session.execute(stmt)
    applications = result.unique().scalars().all()

    return list(applications), total


async def get_application(
    session: AsyncSession,
    user: UserContext,
    application_id: int,
) -> Application | None:
    """Return a single application if visible to the current user.

    Returns None (which the route maps to 404) for out-of-scope applications
    rather than 403, to avoid leaking existence of resources.
    """
    stmt = _with_people(select(Application)).where(Application.id == application_id)
    stmt = apply_data_scope(stmt, user.data_scope, user)
    result = await session.execute(stmt)
    return result.unique().scalar_one_or_none()


async def create_application(
    session: AsyncSession,
    user: UserContext,
    *,
    title: str,
    description: str,
    files: list[FileUpload] | None = None,
) -> Application:
    """Create a pending application with its documents in one transaction.

    All files are validated before anything is written. If an upload or an
    insert fails, the transaction is rolled back and the objects already
    stored are removed before the error propagates.
    """
    files = files or []
    for upload in files:
        validate_upload(upload)

    application = Application(
        title=title,
        description=description,
        status=ApplicationStatus.PENDING,
        applicant_id=user.user_id,
    )
    session.add(application)

    stored_keys: list[str] = []
    storage = get_storage_service() if files else None
    try:
        await session.flush()

        for upload in files:
            object_key = storage.build_object_key(user.user_id, upload.filename)
            await storage.upload_file(upload.data, object_key, upload.content_type)
            stored_keys.append(object_key)
            session.add(
                Document(
                    application_id=application.id,
                    file_name=upload.filename,
                    file_type=upload.content_type,
                    file_size=upload.size,
                    storage_path=object_key,
                    uploaded_by=user.user_id,
                )
            )

        await write_activity(
            session,
            user_id=user.user_id,
            action=ActivityAction.APPLICATION_CREATED,
            resource_type="application",
            resource_id=application.id,
            details={"title": title, "description": description, "file_count": len(files)},
        )
        app_id = application.id  # capture before commit
        await session.commit()
    except Exception:
        await session.rollback()
        if stored_keys:
            failed = await storage.delete_files(stored_keys)
            logger.warning(
                "Application create failed; removed %d of %d stored files",
                len(stored_keys) - len(failed),
                len(stored_keys),
            )
        raise

    logger.info("Application %s created by %s with %d files", app_id, user.user_id, len(files))
    # Re-query with eager loading to avoid lazy-load in async context
    return await get_application(session, user, app_id)


async def update_application(
    session: AsyncSession,
    user: UserContext,
    application_id: int,
    *,
    title: str | None = None,
    description: str | None = None,
) -> Application | None:
    """Edit title/description. Applicants may only edit while pending.

    Status changes must use ``transition_status()`` instead.
    """
    app = await get_application(session, user, application_id)
    if app is None:
        return None

    if user.role != UserRole.ADMIN and app.status != ApplicationStatus.PENDING:
        raise ApplicationLockedError(
            f"Application is {app.status.label} and can no longer be edited"
        )

    changes = {}
    if title is not None and title != app.title:
        changes["title"] = title
    if description is not None and description != app.description:
        changes["description"] = description

    if changes:
        for field, value in changes.items():
            setattr(app, field, value)
        app.updated_at = datetime.now(UTC)
        await write_activity(
            session,
            user_id=user.user_id,
            action=ActivityAction.APPLICATION_UPDATED,
            resource_type="application",
            resource_id=application_id,
            details={"fields": sorted(changes)},
        )
        await session.commit()

    return await get_application(session, user, application_id)


async def transition_status(
    session: AsyncSession,
    user: UserContext,
    application_id: int,
    new_status: ApplicationStatus,
    *,
    expected_updated_at: datetime | None = None,
) -> Application | None:
    """Move an application to a new status with validation.

    Returns None if the application is not found or not accessible.
    Raises StaleUpdateError if ``expected_updated_at`` is given and differs
    from the stored value, or if the row changed between the read and the
    write. Raises InvalidTransitionError if the transition is not allowed.
    None of these cases modifies the row.
    """
    app = await get_application(session, user, application_id)
    if app is None:
        return None

    if expected_updated_at is not None:
        expected_updated_at = _as_utc(expected_updated_at)
        if app.updated_at != expected_updated_at:
            raise StaleUpdateError(app.updated_at)

    current = app.status or ApplicationStatus.PENDING
    allowed = ApplicationStatus.valid_transitions().get(current, frozenset())

    if new_status not in allowed:
        raise InvalidTransitionError(
            f"Cannot transition from '{current.value}' to '{new_status.value}'. "
            f"Allowed: {sorted(s.value for s in allowed) if allowed else 'none (terminal status)'}."
        )

    # Compare-and-set: a concurrent change between the read above and this
    # write matches no row.
    now = datetime.now(UTC)
    guard = [Application.id == application_id, Application.status == current]
    if expected_updated_at is not None:
        guard.append(Application.updated_at == expected_updated_at)
    result = await session.execute(
        update(Application)
        .where(*guard)
        .values(status=new_status, updated_at=now)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        await session.rollback()
        latest = await get_application(session, user, application_id)
        raise StaleUpdateError(latest.updated_at if latest is not None else now)
    app.status = new_status
    app.updated_at = now

    await write_activity(
        session,
        user_id=user.user_id,
        action=ActivityAction.STATUS_UPDATED,
        resource_type="application",
        resource_id=application_id,
        details={"old_status": current.value, "new_status": new_status.value},
    )
    notification = await create_notification(
        session,
        user_id=app.applicant_id,
        title="Application status updated",
        message=f'Your application "{app.title}" is now {new_status.label}.',
        type=NotificationType.STATUS_CHANGE,
        application_id=application_id,
    )
    await session.commit()
    publish_created([notification])

    logger.info(
        "Application %s: %s -> %s by %s",
        application_id,
        current.value,
        new_status.value,
        user.user_id,
    )
    return await get_application(session, user, application_id)


async def assign_reviewer(
    session: AsyncSession,
    user: UserContext,
    application_id: int,
    reviewer_id: str | None,
) -> Application | None:
    """Assign (or clear, with None) the reviewer of an application."""
    app = await get_application(session, user, application_id)
    if app is None:
        return None

    if reviewer_id is not None:
        result = await session.execute(select(Profile).where(Profile.user_id == reviewer_id))
        reviewer = result.scalar_one_or_none()
        if reviewer is None:
            raise ReviewerNotFoundError(f"Reviewer {reviewer_id} not found")
        if reviewer.role != UserRole.REVIEWER:
            raise InvalidReviewerError(f"User {reviewer_id} is not a reviewer")

    previous = app.assigned_reviewer_id
    app.assigned_reviewer_id = reviewer_id
    app.updated_at = datetime.now(UTC)

    await write_activity(
        session,
        user_id=user.user_id,
        action=ActivityAction.REVIEWER_ASSIGNED,
        resource_type="application",
        resource_id=application_id,
        details={"reviewer_id": reviewer_id, "previous_reviewer_id": previous},
    )
    notifications = []
    if reviewer_id is not None and reviewer_id != previous:
        notifications.append(
            await create_notification(
                session,
                user_id=reviewer_id,
                title="New application assigned",
                message=f'You have been assigned to review "{app.title}".',
                type=NotificationType.ASSIGNMENT,
                application_id=application_id,
            )
        )
    await session.commit()
    publish_created(notifications)

    # The identity map still holds the old reviewer relationship
    await session.refresh(app, attribute_names=["assigned_reviewer"])
    return app


async def delete_application(
    session: AsyncSession,
    user: UserContext,
    application_id: int,
) -> bool:
    """Delete an application and its rows, then its stored files.

    Storage cleanup runs after the commit and only logs failures, so a
    missing object never blocks the delete.
    """
    app = await get_application(session, user, application_id)
    if app is None:
        return False

    title = app.title
    paths_result = await session.execute(
        select(Document.storage_path).where(Document.application_id == application_id)
    )
    storage_paths = list(paths_result.scalars().all())

    await session.execute(delete(Application).where(Application.id == application_id))
    await write_activity(
        session,
        user_id=user.user_id,
        action=ActivityAction.APPLICATION_DELETED,
        resource_type="application",
        resource_id=application_id,
        details={"title": title, "file_count": len(storage_paths)},
    )
    await session.commit()

    if storage_paths:
        failed = await get_storage_service().delete_files(storage_paths)
        if failed:
            logger.warning(
                "Application %s deleted; %d stored files could not be removed",
                application_id,
                len(failed),
            )

    logger.info("Application %s deleted by %s", application_id, user.user_id)
    return True
