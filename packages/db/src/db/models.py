# This project was developed with assistance from AI tools.
"""
Application tracker -- domain models

Profiles, applications under review, their documents and comments,
per-user notifications, and the activity log.
"""

from sqlalchemy import (
    JSON,
    BigInteger,
    Boolean,
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.orm import relationship

from .database import Base
from .enums import ApplicationStatus, NotificationType, UserRole


def _enum_values(enum_cls):
    """Persist enum values ('under_review'), not member names."""
    return [member.value for member in enum_cls]


class Profile(Base):
    """User profile linked to Keycloak identity. Authoritative for role."""

    __tablename__ = "profiles"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(255), unique=True, nullable=False, index=True)
    email = Column(String(255), nullable=False, index=True)
    full_name = Column(String(255), nullable=False, default="")
    role = Column(
        Enum(UserRole, name="user_role", native_enum=False, values_callable=_enum_values),
        nullable=False,
        default=UserRole.APPLICANT,
    )
    avatar_url = Column(String(1000), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return f"<Profile(user_id='{self.user_id}', role='{self.role}')>"


class Application(Base):
    """Applicant-submitted application."""

    __tablename__ = "applications"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(500), nullable=False)
    description = Column(Text, nullable=False)
    status = Column(
        Enum(ApplicationStatus, name="application_status", native_enum=False, values_callable=_enum_values),
        nullable=False,
        default=ApplicationStatus.PENDING,
        index=True,
    )
    applicant_id = Column(
        String(255), ForeignKey("profiles.user_id", ondelete="CASCADE"), nullable=False, index=True,
    )
    assigned_reviewer_id = Column(
        String(255), ForeignKey("profiles.user_id", ondelete="SET NULL"), nullable=True, index=True,
    )
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    applicant = relationship("Profile", foreign_keys=[applicant_id])
    assigned_reviewer = relationship("Profile", foreign_keys=[assigned_reviewer_id])
    documents = relationship(
        "Document", back_populates="application", cascade="all, delete-orphan",
    )
    comments = relationship(
        "ApplicationComment", back_populates="application", cascade="all, delete-orphan",
    )

    def __repr__(self):
        return f"<Application(id={self.id}, status='{self.status}')>"


class Document(Base):
    """File uploaded for an application; bytes live in object storage."""

    __tablename__ = "documents"

    id = Column(Integer, primary_key=True, autoincrement=True)
    application_id = Column(
        Integer, ForeignKey("applications.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    file_name = Column(String(500), nullable=False)
    file_type = Column(String(255), nullable=True)
    file_size = Column(BigInteger, nullable=True)
    storage_path = Column(String(1000), nullable=False)
    uploaded_by = Column(
        String(255), ForeignKey("profiles.user_id", ondelete="SET NULL"), nullable=True, index=True,
    )
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    application = relationship("Application", back_populates="documents")
    uploader = relationship("Profile", foreign_keys=[uploaded_by])

    def __repr__(self):
        return f"<Document(id={self.id}, file_name='{self.file_name}')>"


class ApplicationComment(Base):
    """Reviewer/admin comment on an application."""

    __tablename__ = "application_comments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    application_id = Column(
        Integer, ForeignKey("applications.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    commenter_id = Column(
        String(255), ForeignKey("profiles.user_id", ondelete="CASCADE"), nullable=False, index=True,
    )
    comment = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    application = relationship("Application", back_populates="comments")
    commenter = relationship("Profile", foreign_keys=[commenter_id])

    def __repr__(self):
        return f"<ApplicationComment(id={self.id}, app_id={self.application_id})>"


class Notification(Base):
    """Per-user notification with a read flag."""

    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(
        String(255), ForeignKey("profiles.user_id", ondelete="CASCADE"), nullable=False, index=True,
    )
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    type = Column(
        Enum(NotificationType, name="notification_type", native_enum=False, values_callable=_enum_values),
        nullable=False,
        default=NotificationType.INFO,
    )
    is_read = Column(Boolean, nullable=False, default=False)
    application_id = Column(
        Integer, ForeignKey("applications.id", ondelete="CASCADE"), nullable=True, index=True,
    )
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<Notification(id={self.id}, user='{self.user_id}', read={self.is_read})>"


class ActivityLog(Base):
    """Append-only record of user actions."""

    __tablename__ = "activity_logs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(255), nullable=True, index=True)
    action = Column(String(100), nullable=False, index=True)
    resource_type = Column(String(100), nullable=False)
    resource_id = Column(String(255), nullable=True, index=True)
    details = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<ActivityLog(id={self.id}, action='{self.action}')>"
