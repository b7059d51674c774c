"""Request/response schemas for user administration."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from gatekeeper.schemas.common import RoleSimple

# Deliberately loose: one @, no whitespace, a dot in the domain.
EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


class UserCreate(BaseModel):
    username: str = Field(..., min_length=3, max_length=32)
    email: str = Field(..., max_length=255, pattern=EMAIL_PATTERN)
    password: str = Field(..., min_length=6, max_length=128)
    role_ids: list[int] | None = Field(default=None, description="Roles granted after creation")


class UserUpdate(BaseModel):
    username: str = Field(..., min_length=3, max_length=32)
    email: str = Field(..., max_length=255, pattern=EMAIL_PATTERN)
    password: str | None = Field(default=None, min_length=6, max_length=128)
    role_ids: list[int] | None = Field(
        default=None, description="When set, replaces the user's full role set"
    )


class RoleIdsRequest(BaseModel):
    role_ids: list[int] = Field(..., description="Role ids to assign or remove")


class UserResponse(BaseModel):
    """User as returned by the API. Has no password field by construction."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    email: str
    created_at: datetime
    updated_at: datetime
    roles: list[RoleSimple] = Field(default_factory=list)
