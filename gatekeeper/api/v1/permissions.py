"""Permission catalogue endpoints, each guarded by a permission:* permission."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, status

from gatekeeper.api.deps import get_permission_service
from gatekeeper.api.v1.auth import RequirePermission
from gatekeeper.schemas.common import MessageResponse, Page
from gatekeeper.schemas.permission import PermissionCreate, PermissionResponse, PermissionUpdate
from gatekeeper.services.permissions import PermissionService

router = APIRouter()

Permissions = Annotated[PermissionService, Depends(get_permission_service)]


@router.get(
    "",
    response_model=Page[PermissionResponse],
    dependencies=[Depends(RequirePermission("permission:list"))],
)
def list_permissions(
    service: Permissions,
    page: Annotated[int | None, Query(description="1-based page number")] = None,
    page_size: Annotated[int | None, Query(description="Rows per page (max 100)")] = None,
    keyword: Annotated[str | None, Query(max_length=100, description="Matches name or description")] = None,
) -> Page[PermissionResponse]:
    return service.list_permissions(page, page_size, keyword)


@router.post(
    "",
    response_model=PermissionResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(RequirePermission("permission:create"))],
)
def create_permission(body: PermissionCreate, service: Permissions) -> PermissionResponse:
    return service.create_permission(body)


@router.get(
    "/{permission_id}",
    response_model=PermissionResponse,
    dependencies=[Depends(RequirePermission("permission:view"))],
)
def get_permission(permission_id: int, service: Permissions) -> PermissionResponse:
    return service.get_permission(permission_id)


@router.put(
    "/{permission_id}",
    response_model=PermissionResponse,
    dependencies=[Depends(RequirePermission("permission:update"))],
)
def update_permission(
    permission_id: int, body: PermissionUpdate, service: Permissions
) -> PermissionResponse:
    return service.update_permission(permission_id, body)


@router.delete(
    "/{permission_id}",
    response_model=MessageResponse,
    dependencies=[Depends(RequirePermission("permission:delete"))],
)
def delete_permission(permission_id: int, service: Permissions) -> MessageResponse:
    """Delete a permission. Answers 409 while any role is still granted it."""
    service.delete_permission(permission_id)
    return MessageResponse(message="Permission deleted")
