# This project was developed with assistance from AI tools.
"""Document service: validation, scoped listing, uploads and downloads.

Document visibility follows the parent application's data scope, so an
applicant sees documents of their own applications and a reviewer sees
documents of the applications assigned to them.
"""

import logging
import os
from dataclasses import dataclass

from db import Application, Document
from db.enums import ActivityAction
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import contains_eager, joinedload

from ..core.config import settings
from ..schemas.auth import UserContext
from ..services.activity import write_activity
from ..services.scope import apply_data_scope
from ..services.storage import get_storage_service

logger = logging.getLogger(__name__)

ALLOWED_CONTENT_TYPES = {
    "application/pdf",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "image/jpeg",
    "image/png",
    "image/gif",
}

ALLOWED_EXTENSIONS = {".pdf", ".doc", ".docx", ".jpg", ".jpeg", ".png", ".gif"}


class DocumentUploadError(Exception):
    """Raised when a document upload fails validation."""


class UnsupportedFileTypeError(DocumentUploadError):
    """File is not one of the accepted document formats."""


class FileTooLargeError(DocumentUploadError):
    """File exceeds UPLOAD_MAX_SIZE_MB."""


@dataclass
class FileUpload:
    """An uploaded file already read into memory."""

    filename: str
    content_type: str
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)


def validate_upload(upload: FileUpload) -> None:
    """Check type and size. A match on content type or extension is enough."""
    ext = os.path.splitext(upload.filename)[1].lower()
    if upload.content_type not in ALLOWED_CONTENT_TYPES and ext not in ALLOWED_EXTENSIONS:
        raise UnsupportedFileTypeError(
            f"Unsupported file type for {upload.filename!r}. "
            "Allowed: PDF, DOC, DOCX, JPG, PNG, GIF"
        )

    max_bytes = settings.UPLOAD_MAX_SIZE_MB * 1024 * 1024
    if upload.size > max_bytes:
        raise FileTooLargeError(
            f"File {upload.filename!r} exceeds maximum of {settings.UPLOAD_MAX_SIZE_MB}MB"
        )


async def _get_visible_application(
    session: AsyncSession,
    user: UserContext,
    application_id: int,
) -> Application | None:
    stmt = select(Application).where(Application.id == application_id)
    stmt = apply_data_scope(stmt, user.data_scope, user)
    result = await session.execute(stmt)
    return result.unique().scalar_one_or_none()


async def list_documents(
    session: AsyncSession,
    user: UserContext,
    application_id: int,
) -> list[Document] | None:
    """Documents of a visible application, newest first. None if out of scope."""
    if await _get_visible_application(session, user, application_id) is None:
        return None

    stmt = (
        select(Document)
        .options(joinedload(Document.uploader))
        .where(Document.application_id == application_id)
        .order_by(Document.created_at.desc(), Document.id.desc())
    )
    result = await session.execute(stmt)
    return list(result.unique().scalars().all())


async def get_document(
    session: AsyncSession,
    user: UserContext,
    document_id: int,
) -> Document | None:
    """Return a single document if its application is visible to the user."""
    stmt = select(Document).where(Document.id == document_id)
    stmt = apply_data_scope(
        stmt,
        user.data_scope,
        user,
        join_to_application=Document.application,
    )
    result = await session.execute(stmt)
    return result.unique().scalar_one_or_none()


async def upload_document(
    session: AsyncSession,
    user: UserContext,
    application_id: int,
    upload: FileUpload,
) -> Document | None:
    """Store one file for an application and create its Document row.

    Returns None if the application is not visible. When the row cannot be
    committed the stored object is removed again.
    """
    validate_upload(upload)

    if await _get_visible_application(session, user, application_id) is None:
        return None

    storage = get_storage_service()
    object_key = storage.build_object_key(user.user_id, upload.filename)
    await storage.upload_file(upload.data, object_key, upload.content_type)

    try:
        doc = Document(
            application_id=application_id,
            file_name=os.path.basename(upload.filename) or "document",
            file_type=upload.content_type,
            file_size=upload.size,
            storage_path=object_key,
            uploaded_by=user.user_id,
        )
        session.add(doc)
        await session.flush()
        await write_activity(
            session,
            user_id=user.user_id,
            action=ActivityAction.DOCUMENT_UPLOADED,
            resource_type="application",
            resource_id=application_id,
            details={"file_name": doc.file_name, "file_size": upload.size},
        )
        await session.commit()
    except Exception:
        await session.rollback()
        await storage.delete_files([object_key])
        raise

    await session.refresh(doc)
    logger.info("Document %s uploaded to application %s", doc.id, application_id)
    return doc


async def download_document(
    session: AsyncSession,
    user: UserContext,
    document_id: int,
) -> tuple[Document, bytes] | None:
    """Return the document and its bytes, or None if not visible."""
    doc = await get_document(session, user, document_id)
    if doc is None:
        return None
    data = await get_storage_service().download_file(doc.storage_path)
    return doc, data


async def list_all_documents(
    session: AsyncSession,
    *,
    search: str | None = None,
    offset: int = 0,
    limit: int = 50,
) -> tuple[list[Document], int]:
    """Admin view of every document with its application and people loaded.

    ``search`` matches file name or application title, case-insensitively.
    """
    filters = []
    if search:
        pattern = f"%{search.strip()}%"
        filters.append(or_(Document.file_name.ilike(pattern), Application.title.ilike(pattern)))

    count_stmt = select(func.count(Document.id)).join(Document.application).where(*filters)
    total = (await session.execute(count_stmt)).scalar() or 0

    stmt = (
        select(Document)
        .join(Document.application)
        .options(
            contains_eager(Document.application).joinedload(Application.applicant),
            joinedload(Document.uploader),
        )
        .where(*filters)
        .order_by(Document.created_at.desc(), Document.id.desc())
        .offset(offset)
        .limit(limit)
    )
    result = await session.execute(stmt)
    return list(result.unique().scalars().all()), total
