# This project was developed with assistance from AI tools.
"""
Raw table browser for operators, mounted at /admin.

Sits beside the REST admin endpoints rather than replacing them: it edits rows
directly and skips service-level rules, so it is gated by its own login
(SQLADMIN_USER / SQLADMIN_PASSWORD) unless AUTH_DISABLED=true.
"""

import hmac

from db import (
    ActivityLog,
    Application,
    ApplicationComment,
    Document,
    Notification,
    Profile,
)
from sqladmin import Admin, ModelView
from sqladmin.authentication import AuthenticationBackend
from sqlalchemy import create_engine
from starlette.requests import Request
from starlette.responses import Response

from .core.config import settings

# SQLAdmin requires a sync engine; derive from the async DATABASE_URL
_sync_url = settings.DATABASE_URL.replace("+asyncpg", "")
engine = create_engine(_sync_url, echo=False)


def _matches(submitted, expected: str) -> bool:
    return hmac.compare_digest(str(submitted or "").encode(), expected.encode())


class AdminAuth(AuthenticationBackend):
    """Login form backed by a signed session cookie."""

    async def login(self, request: Request) -> bool:
        form = await request.form()
        if _matches(form.get("username"), settings.SQLADMIN_USER) and _matches(
            form.get("password"), settings.SQLADMIN_PASSWORD
        ):
            request.session.update({"admin_authenticated": True})
            return True
        return False

    async def logout(self, request: Request) -> bool:
        request.session.clear()
        return True

    async def authenticate(self, request: Request) -> Response | bool:
        if settings.AUTH_DISABLED:
            return True
        return request.session.get("admin_authenticated", False)


class ProfileAdmin(ModelView, model=Profile):
    column_list = [
        Profile.id,
        Profile.user_id,
        Profile.full_name,
        Profile.email,
        Profile.role,
        Profile.created_at,
    ]
    column_searchable_list = [Profile.full_name, Profile.email, Profile.user_id]
    column_sortable_list = [Profile.id, Profile.full_name, Profile.role, Profile.created_at]
    column_default_sort = [(Profile.created_at, True)]
    name = "Profile"
    name_plural = "Profiles"
    icon = "fa-solid fa-user"


class ApplicationAdmin(ModelView, model=Application):
    column_list = [
        Application.id,
        Application.title,
        Application.status,
        Application.applicant_id,
        Application.assigned_reviewer_id,
        Application.created_at,
    ]
    column_searchable_list = [Application.title, Application.applicant_id]
    column_sortable_list = [Application.id, Application.status, Application.created_at]
    column_default_sort = [(Application.created_at, True)]
    name = "Application"
    name_plural = "Applications"
    icon = "fa-solid fa-file-alt"


class DocumentAdmin(ModelView, model=Document):
    column_list = [
        Document.id,
        Document.application_id,
        Document.file_name,
        Document.file_type,
        Document.file_size,
        Document.uploaded_by,
        Document.created_at,
    ]
    column_searchable_list = [Document.file_name, Document.uploaded_by]
    column_sortable_list = [Document.id, Document.file_name, Document.created_at]
    column_default_sort = [(Document.created_at, True)]
    name = "Document"
    name_plural = "Documents"
    icon = "fa-solid fa-file-upload"


class CommentAdmin(ModelView, model=ApplicationComment):
    column_list = [
        ApplicationComment.id,
        ApplicationComment.application_id,
        ApplicationComment.commenter_id,
        ApplicationComment.created_at,
    ]
    column_default_sort = [(ApplicationComment.created_at, True)]
    name = "Comment"
    name_plural = "Comments"
    icon = "fa-solid fa-comment"


class NotificationAdmin(ModelView, model=Notification):
    column_list = [
        Notification.id,
        Notification.user_id,
        Notification.title,
        Notification.type,
        Notification.is_read,
        Notification.created_at,
    ]
    column_sortable_list = [Notification.id, Notification.is_read, Notification.created_at]
    column_default_sort = [(Notification.created_at, True)]
    name = "Notification"
    name_plural = "Notifications"
    icon = "fa-solid fa-bell"


class ActivityLogAdmin(ModelView, model=ActivityLog):
    column_list = [
        ActivityLog.id,
        ActivityLog.created_at,
        ActivityLog.action,
        ActivityLog.user_id,
        ActivityLog.resource_type,
        ActivityLog.resource_id,
    ]
    column_sortable_list = [ActivityLog.id, ActivityLog.created_at, ActivityLog.action]
    column_default_sort = [(ActivityLog.created_at, True)]
    can_create = False
    can_edit = False
    can_delete = False
    name = "Activity"
    name_plural = "Activity Log"
    icon = "fa-solid fa-shield-alt"


def setup_admin(app):
    """Set up SQLAdmin and mount it to the FastAPI app."""
    auth_backend = AdminAuth(
        secret_key=settings.SQLADMIN_SECRET_KEY,
    )
    admin = Admin(
        app, engine, title="Application Tracker Admin", authentication_backend=auth_backend
    )

    admin.add_view(ProfileAdmin)
    admin.add_view(ApplicationAdmin)
    admin.add_view(DocumentAdmin)
    admin.add_view(CommentAdmin)
    admin.add_view(NotificationAdmin)
    admin.add_view(ActivityLogAdmin)

    return admin
