"""Request/response schemas for permission administration."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class PermissionCreate(BaseModel):
    code: str = Field(..., min_length=2, max_length=100, description="e.g. user:list")
    name: str = Field(..., min_length=2, max_length=100)
    description: str = Field(default="", max_length=1000)


class PermissionUpdate(PermissionCreate):
    pass


class PermissionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    code: str
    name: str
    description: str
    created_at: datetime
    updated_at: datetime
