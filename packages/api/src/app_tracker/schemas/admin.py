# This project was developed with assistance from AI tools.
"""Pydantic response models for admin endpoints."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict

from . import Pagination


class StatsResponse(BaseModel):
    """Response for GET /api/admin/stats."""

    total_applications: int
    by_status: dict[str, int]
    total_users: int
    total_reviewers: int


class ActivityLogItem(BaseModel):
    """Single activity entry in a query response."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: str | None = None
    action: str
    resource_type: str
    resource_id: str | None = None
    details: dict | None = None
    created_at: datetime


class ActivityLogResponse(BaseModel):
    """Response for GET /api/admin/activity."""

    data: list[ActivityLogItem]
    pagination: Pagination
