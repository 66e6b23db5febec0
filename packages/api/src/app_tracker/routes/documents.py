# This project was developed with assistance from AI tools.
"""Document routes: per-application listing, upload, download, admin listing."""

import logging
from urllib.parse import quote

from db import Document, get_db
from db.enums import UserRole
from fastapi import APIRouter, Depends, File, HTTPException, Query, Response, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..middleware.auth import ALL_ROLES, CurrentUser, require_roles
from ..schemas import Pagination
from ..schemas.document import (
    AdminDocumentListResponse,
    AdminDocumentResponse,
    DocumentListResponse,
    DocumentResponse,
)
from ..services import document as doc_service
from ..services.document import FileTooLargeError, FileUpload, UnsupportedFileTypeError
from ..services.storage import StorageError

logger = logging.getLogger(__name__)

router = APIRouter()


def _build_doc_response(doc: Document) -> DocumentResponse:
    return DocumentResponse(
        id=doc.id,
        application_id=doc.application_id,
        file_name=doc.file_name,
        file_type=doc.file_type,
        file_size=doc.file_size,
        uploaded_by=doc.uploaded_by,
        uploader_name=doc.uploader.full_name if doc.uploader else None,
        created_at=doc.created_at,
    )


def _content_disposition(file_name: str) -> str:
    """Attachment header with an RFC 5987 fallback for non-ASCII names."""
    ascii_name = file_name.encode("ascii", "ignore").decode() or "download"
    ascii_name = ascii_name.replace('"', "")
    return f"attachment; filename=\"{ascii_name}\"; filename*=UTF-8''{quote(file_name)}"


@router.get(
    "/applications/{application_id}/documents",
    response_model=DocumentListResponse,
    dependencies=[Depends(require_roles(*ALL_ROLES))],
)
async def list_documents(
    application_id: int,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> DocumentListResponse:
    """List documents for a visible application, newest first."""
    documents = await doc_service.list_documents(session, user, application_id)
    if documents is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Application not found",
        )
    items = [_build_doc_response(doc) for doc in documents]
    return DocumentListResponse(data=items, count=len(items))


@router.post(
    "/applications/{application_id}/documents",
    response_model=DocumentResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_roles(*ALL_ROLES))],
)
async def upload_document(
    application_id: int,
    user: CurrentUser,
    file: UploadFile = File(...),
    session: AsyncSession = Depends(get_db),
) -> DocumentResponse:
    """Upload a document for an application."""
    upload = FileUpload(
        filename=file.filename or "document",
        content_type=file.content_type or "application/octet-stream",
        data=await file.read(),
    )

    try:
        doc = await doc_service.upload_document(session, user, application_id, upload)
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
            detail="File storage failed",
        ) from exc

    if doc is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Application not found",
        )

    return DocumentResponse(
        id=doc.id,
        application_id=doc.application_id,
        file_name=doc.file_name,
        file_type=doc.file_type,
        file_size=doc.file_size,
        uploaded_by=doc.uploaded_by,
        uploader_name=user.name,
        created_at=doc.created_at,
    )


@router.get(
    "/documents/{document_id}/download",
    dependencies=[Depends(require_roles(*ALL_ROLES))],
)
async def download_document(
    document_id: int,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> Response:
    """Stream the stored file as an attachment."""
    try:
        found = await doc_service.download_document(session, user, document_id)
    except StorageError as exc:
        logger.error("Download of document %s failed: %s", document_id, exc)
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Failed to download file",
        ) from exc

    if found is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Document not found",
        )
    doc, data = found
    return Response(
        content=data,
        media_type=doc.file_type or "application/octet-stream",
        headers={"Content-Disposition": _content_disposition(doc.file_name)},
    )


@router.get(
    "/admin/documents",
    response_model=AdminDocumentListResponse,
    dependencies=[Depends(require_roles(UserRole.ADMIN))],
)
async def list_all_documents(
    session: AsyncSession = Depends(get_db),
    search: str | None = Query(default=None, max_length=200),
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=200),
) -> AdminDocumentListResponse:
    """All documents with application title, applicant and uploader names."""
    documents, total = await doc_service.list_all_documents(
        session,
        search=search,
        offset=offset,
        limit=limit,
    )
    items = [
        AdminDocumentResponse(
            **_build_doc_response(doc).model_dump(),
            application_title=doc.application.title,
            applicant_name=doc.application.applicant.full_name
            if doc.application.applicant
            else None,
        )
        for doc in documents
    ]
    return AdminDocumentListResponse(
        data=items,
        pagination=Pagination(
            total=total,
            offset=offset,
            limit=limit,
            has_more=(offset + limit < total),
        ),
    )
