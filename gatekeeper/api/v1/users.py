"""User administration endpoints, each guarded by a user:* permission."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, status

from gatekeeper.api.deps import get_identity_service
from gatekeeper.api.v1.auth import RequirePermission
from gatekeeper.schemas.common import MessageResponse, Page, RoleSimple
from gatekeeper.schemas.user import RoleIdsRequest, UserCreate, UserResponse, UserUpdate
from gatekeeper.services.identity import IdentityService

router = APIRouter()

Identity = Annotated[IdentityService, Depends(get_identity_service)]


@router.get("", response_model=Page[UserResponse], dependencies=[Depends(RequirePermission("user:list"))])
def list_users(
    service: Identity,
    page: Annotated[int | None, Query(description="1-based page number")] = None,
    page_size: Annotated[int | None, Query(description="Rows per page (max 100)")] = None,
    keyword: Annotated[str | None, Query(max_length=100, description="Matches username or email")] = None,
) -> Page[UserResponse]:
    return service.list_users(page, page_size, keyword)


@router.post(
    "",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(RequirePermission("user:create"))],
)
def create_user(body: UserCreate, service: Identity) -> UserResponse:
    """Create a user; role_ids, if given, are assigned right after creation."""
    return service.create_user(body)


@router.get("/{user_id}", response_model=UserResponse, dependencies=[Depends(RequirePermission("user:view"))])
def get_user(user_id: int, service: Identity) -> UserResponse:
    return service.get_user(user_id)


@router.put("/{user_id}", response_model=UserResponse, dependencies=[Depends(RequirePermission("user:update"))])
def update_user(user_id: int, body: UserUpdate, service: Identity) -> UserResponse:
    return service.update_user(user_id, body)


@router.delete("/{user_id}", response_model=MessageResponse, dependencies=[Depends(RequirePermission("user:delete"))])
def delete_user(user_id: int, service: Identity) -> MessageResponse:
    service.delete_user(user_id)
    return MessageResponse(message="User deleted")


@router.get(
    "/{user_id}/roles",
    response_model=list[RoleSimple],
    dependencies=[Depends(RequirePermission("user:view"))],
)
def get_user_roles(user_id: int, service: Identity) -> list[RoleSimple]:
    return service.get_roles(user_id)


@router.post(
    "/{user_id}/roles",
    response_model=list[RoleSimple],
    dependencies=[Depends(RequirePermission("user:assign-role"))],
)
def assign_user_roles(user_id: int, body: RoleIdsRequest, service: Identity) -> list[RoleSimple]:
    """Grant roles; roles the user already holds are left as they are."""
    return service.assign_roles(user_id, body.role_ids)


@router.delete(
    "/{user_id}/roles",
    response_model=list[RoleSimple],
    dependencies=[Depends(RequirePermission("user:assign-role"))],
)
def remove_user_roles(user_id: int, body: RoleIdsRequest, service: Identity) -> list[RoleSimple]:
    return service.remove_roles(user_id, body.role_ids)
