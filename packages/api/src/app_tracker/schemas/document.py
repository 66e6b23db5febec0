# This project was developed with assistance from AI tools.
"""Document request/response schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict

from . import Pagination


class DocumentResponse(BaseModel):
    """Document metadata. The storage path never leaves the server."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    application_id: int
    file_name: str
    file_type: str | None = None
    file_size: int | None = None
    uploaded_by: str | None = None
    uploader_name: str | None = None
    created_at: datetime


class DocumentListResponse(BaseModel):
    """Documents of one application."""

    data: list[DocumentResponse]
    count: int


class AdminDocumentResponse(DocumentResponse):
    """Document row in the admin listing, with its application context."""

    application_title: str
    applicant_name: str | None = None


class AdminDocumentListResponse(BaseModel):
    """Paginated admin listing of all documents."""

    data: list[AdminDocumentResponse]
    pagination: Pagination
