# This project was developed with assistance from AI tools.
"""Pure auth utility functions with no FastAPI or HTTP dependencies.

Used by both the HTTP dependency layer and the notification WebSocket,
which authenticates outside the regular request lifecycle.
"""

from db.enums import UserRole

from ..schemas.auth import DataScope


def build_data_scope(role: UserRole, user_id: str) -> DataScope:
    """Build data scope rules based on the user's role."""
    if role == UserRole.APPLICANT:
        return DataScope(own_data_only=True, user_id=user_id)
    if role == UserRole.REVIEWER:
        return DataScope(assigned_to=user_id)
    if role == UserRole.ADMIN:
        return DataScope(full_pipeline=True)
    # unknown -- minimal access
    return DataScope()
