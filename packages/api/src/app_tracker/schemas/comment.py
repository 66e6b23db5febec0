# This project was developed with assistance from AI tools.
"""Comment request/response schemas."""

from datetime import datetime

from db.enums import UserRole
from pydantic import BaseModel, Field


class CommentCreate(BaseModel):
    """New review comment. Blank text is rejected after trimming."""

    comment: str = Field(..., max_length=10000)


class CommentResponse(BaseModel):
    id: int
    application_id: int
    commenter_id: str
    commenter_name: str | None = None
    commenter_role: UserRole | None = None
    comment: str
    created_at: datetime


class CommentListResponse(BaseModel):
    data: list[CommentResponse]
    count: int
