"""Shared response shapes: pagination envelope and embedded references."""

from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field

T = TypeVar("T")


class Page(BaseModel, Generic[T]):
    """One page of a listing plus the totals needed to render paging controls."""

    total: int = Field(..., description="Rows matching the query")
    page: int
    page_size: int
    total_pages: int
    items: list[T]


class RoleSimple(BaseModel):
    """Role reference embedded in user payloads."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    code: str
    name: str


class PermissionSimple(BaseModel):
    """Permission reference embedded in role payloads."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    code: str
    name: str


class MessageResponse(BaseModel):
    message: str
