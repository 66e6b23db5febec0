# This project was developed with assistance from AI tools.
"""Profile request/response schemas."""

from datetime import datetime

from db.enums import UserRole
from pydantic import BaseModel, ConfigDict, Field, field_validator


class ProfileResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    user_id: str
    email: str
    full_name: str
    role: UserRole
    avatar_url: str | None = None
    created_at: datetime
    updated_at: datetime


class ProfileUpdate(BaseModel):
    """Self-service edit. Only the display name is user-editable."""

    full_name: str = Field(..., max_length=255)

    @field_validator("full_name")
    @classmethod
    def _strip(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value


class AdminUserUpdate(BaseModel):
    """Admin edit of another user's profile."""

    full_name: str | None = Field(default=None, max_length=255)
    email: str | None = Field(default=None, max_length=255)
    role: UserRole | None = None


class UserListResponse(BaseModel):
    data: list[ProfileResponse]
    count: int
