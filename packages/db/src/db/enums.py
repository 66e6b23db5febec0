# This project was developed with assistance from AI tools.
"""
Domain enums for the application review lifecycle.

Shared domain types used by both SQLAlchemy models (db package)
and Pydantic schemas (api package).
"""

import enum


class ApplicationStatus(str, enum.Enum):
    PENDING = "pending"
    UNDER_REVIEW = "under_review"
    APPROVED = "approved"
    REJECTED = "rejected"

    @property
    def label(self) -> str:
        """Human-readable label, e.g. ``under review``."""
        return self.value.replace("_", " ")

    @classmethod
    def terminal_statuses(cls) -> frozenset["ApplicationStatus"]:
        """Statuses where a review is finished."""
        return frozenset({cls.APPROVED, cls.REJECTED})

    @classmethod
    def valid_transitions(cls) -> dict["ApplicationStatus", frozenset["ApplicationStatus"]]:
        """Allowed status transitions in the review lifecycle."""
        return {
            cls.PENDING: frozenset({cls.UNDER_REVIEW, cls.REJECTED}),
            cls.UNDER_REVIEW: frozenset({cls.PENDING, cls.APPROVED, cls.REJECTED}),
            cls.APPROVED: frozenset(),
            cls.REJECTED: frozenset(),
        }


class UserRole(str, enum.Enum):
    APPLICANT = "applicant"
    REVIEWER = "reviewer"
    ADMIN = "admin"


class NotificationType(str, enum.Enum):
    STATUS_CHANGE = "status_change"
    COMMENT = "comment"
    ASSIGNMENT = "assignment"
    INFO = "info"


class ActivityAction(str, enum.Enum):
    APPLICATION_CREATED = "application_created"
    APPLICATION_UPDATED = "application_updated"
    APPLICATION_DELETED = "application_deleted"
    STATUS_UPDATED = "status_updated"
    REVIEWER_ASSIGNED = "reviewer_assigned"
    COMMENT_ADDED = "comment_added"
    DOCUMENT_UPLOADED = "document_uploaded"
    USER_UPDATED = "user_updated"
    USER_DELETED = "user_deleted"
