# This project was developed with assistance from AI tools.
"""Caller identity and visibility scope."""

from db.enums import UserRole
from pydantic import BaseModel, ConfigDict, Field


class DataScope(BaseModel):
    """Which applications a caller may see.

    Applicants get ``own_data_only`` with their ``user_id``, reviewers get
    ``assigned_to``, admins get ``full_pipeline``. An empty scope sees nothing.
    """

    assigned_to: str | None = None
    own_data_only: bool = False
    user_id: str | None = None
    full_pipeline: bool = False


class UserContext(BaseModel):
    """The authenticated caller, attached to every protected request."""

    model_config = ConfigDict(frozen=True)

    user_id: str
    role: UserRole
    email: str
    name: str
    data_scope: DataScope = Field(default_factory=DataScope)


class TokenPayload(BaseModel):
    """The subset of Keycloak access-token claims we read."""

    sub: str
    email: str = ""
    preferred_username: str = ""
    name: str = ""
    realm_access: dict = Field(default_factory=dict)
