# This project was developed with assistance from AI tools.
"""Notification schemas for the REST list and the realtime feed."""

from datetime import datetime
from typing import Literal

from db.enums import NotificationType
from pydantic import BaseModel, ConfigDict


class NotificationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    message: str
    type: NotificationType
    is_read: bool
    application_id: int | None = None
    created_at: datetime


class NotificationListResponse(BaseModel):
    """Most recent notifications with the unread badge count."""

    data: list[NotificationResponse]
    unread_count: int


class MarkAllReadResponse(BaseModel):
    updated: int


class NotificationFeedMessage(BaseModel):
    """Frame pushed over the notifications WebSocket.

    ``event`` is ``snapshot`` on connect, then ``INSERT`` or ``UPDATE``.
    """

    type: Literal["notifications"] = "notifications"
    event: str
    unread_count: int
    data: list[NotificationResponse]
