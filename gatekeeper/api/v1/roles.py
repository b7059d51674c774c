"""Role administration endpoints, each guarded by a role:* permission."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, status

from gatekeeper.api.deps import get_role_service
from gatekeeper.api.v1.auth import RequirePermission
from gatekeeper.schemas.common import MessageResponse, Page, PermissionSimple
from gatekeeper.schemas.role import PermissionIdsRequest, RoleCreate, RoleResponse, RoleUpdate
from gatekeeper.services.roles import RoleService

router = APIRouter()

Roles = Annotated[RoleService, Depends(get_role_service)]


@router.get("", response_model=Page[RoleResponse], dependencies=[Depends(RequirePermission("role:list"))])
def list_roles(
    service: Roles,
    page: Annotated[int | None, Query(description="1-based page number")] = None,
    page_size: Annotated[int | None, Query(description="Rows per page (max 100)")] = None,
    keyword: Annotated[str | None, Query(max_length=100, description="Matches name or description")] = None,
) -> Page[RoleResponse]:
    return service.list_roles(page, page_size, keyword)


@router.post(
    "",
    response_model=RoleResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(RequirePermission("role:create"))],
)
def create_role(body: RoleCreate, service: Roles) -> RoleResponse:
    return service.create_role(body)


@router.get("/{role_id}", response_model=RoleResponse, dependencies=[Depends(RequirePermission("role:view"))])
def get_role(role_id: int, service: Roles) -> RoleResponse:
    return service.get_role(role_id)


@router.put("/{role_id}", response_model=RoleResponse, dependencies=[Depends(RequirePermission("role:update"))])
def update_role(role_id: int, body: RoleUpdate, service: Roles) -> RoleResponse:
    return service.update_role(role_id, body)


@router.delete("/{role_id}", response_model=MessageResponse, dependencies=[Depends(RequirePermission("role:delete"))])
def delete_role(role_id: int, service: Roles) -> MessageResponse:
    """Delete a role. Answers 409 while any user still holds it."""
    service.delete_role(role_id)
    return MessageResponse(message="Role deleted")


@router.get(
    "/{role_id}/permissions",
    response_model=list[PermissionSimple],
    dependencies=[Depends(RequirePermission("role:view"))],
)
def get_role_permissions(role_id: int, service: Roles) -> list[PermissionSimple]:
    return service.list_permissions(role_id)


@router.post(
    "/{role_id}/permissions",
    response_model=list[PermissionSimple],
    dependencies=[Depends(RequirePermission("role:assign-permission"))],
)
def assign_role_permissions(
    role_id: int, body: PermissionIdsRequest, service: Roles
) -> list[PermissionSimple]:
    return service.assign_permissions(role_id, body.permission_ids)


@router.delete(
    "/{role_id}/permissions",
    response_model=list[PermissionSimple],
    dependencies=[Depends(RequirePermission("role:assign-permission"))],
)
def remove_role_permissions(
    role_id: int, body: PermissionIdsRequest, service: Roles
) -> list[PermissionSimple]:
    return service.remove_permissions(role_id, body.permission_ids)
