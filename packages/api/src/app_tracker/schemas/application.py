# This project was developed with assistance from AI tools.
"""Application request/response schemas."""

from datetime import datetime

from db.enums import ApplicationStatus
from pydantic import BaseModel, ConfigDict, Field, field_validator

from . import Pagination


class ApplicationUpdate(BaseModel):
    """Partial edit of an application's text fields."""

    title: str | None = Field(default=None, max_length=500)
    description: str | None = None

    @field_validator("title", "description")
    @classmethod
    def _not_blank(cls, value: str | None) -> str | None:
        if value is None:
            return None
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value


class StatusUpdateRequest(BaseModel):
    """Move an application to a new status.

    ``expected_updated_at`` is an optional precondition: when supplied and
    the stored ``updated_at`` differs, the request fails with 409.
    """

    status: ApplicationStatus
    expected_updated_at: datetime | None = None


class ReviewerAssignRequest(BaseModel):
    """Assign a reviewer, or clear the assignment with null."""

    reviewer_id: str | None = None


class ApplicationResponse(BaseModel):
    """Single application response with display names."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    description: str
    status: ApplicationStatus
    applicant_id: str
    assigned_reviewer_id: str | None = None
    applicant_name: str | None = None
    reviewer_name: str | None = None
    created_at: datetime
    updated_at: datetime


class ApplicationListResponse(BaseModel):
    """Paginated list of applications."""

    data: list[ApplicationResponse]
    pagination: Pagination
