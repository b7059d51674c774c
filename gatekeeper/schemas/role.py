"""Request/response schemas for role administration."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from gatekeeper.schemas.common import PermissionSimple


class RoleCreate(BaseModel):
    code: str = Field(..., min_length=2, max_length=50)
    name: str = Field(..., min_length=2, max_length=50)
    description: str = Field(default="", max_length=1000)
    permission_ids: list[int] | None = Field(
        default=None, description="Permissions granted after creation"
    )


class RoleUpdate(BaseModel):
    code: str = Field(..., min_length=2, max_length=50)
    name: str = Field(..., min_length=2, max_length=50)
    description: str = Field(default="", max_length=1000)
    permission_ids: list[int] | None = Field(
        default=None, description="When set, replaces the role's full permission set"
    )


class PermissionIdsRequest(BaseModel):
    permission_ids: list[int] = Field(..., description="Permission ids to assign or remove")


class RoleResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    code: str
    name: str
    description: str
    created_at: datetime
    updated_at: datetime
    permissions: list[PermissionSimple] = Field(default_factory=list)
