# This project was developed with assistance from AI tools.
__version__ = "0.1.0"

from .database import Base, DatabaseService, get_db, get_db_service
from .enums import (
    ActivityAction,
    ApplicationStatus,
    NotificationType,
    UserRole,
)
from .models import (
    ActivityLog,
    Application,
    ApplicationComment,
    Document,
    Notification,
    Profile,
)

__all__ = [
    "Base",
    "DatabaseService",
    "get_db",
    "get_db_service",
    "__version__",
    # Enums
    "ActivityAction",
    "ApplicationStatus",
    "NotificationType",
    "UserRole",
    # Models
    "ActivityLog",
    "Application",
    "ApplicationComment",
    "Document",
    "Notification",
    "Profile",
]
