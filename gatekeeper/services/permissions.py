"""Permission catalogue administration."""

import functools
import logging

from gatekeeper.core.errors import PermissionExistsError, PermissionNotFoundError
from gatekeeper.models import Permission
from gatekeeper.repositories import Repository
from gatekeeper.repositories.base import on_write_conflict
from gatekeeper.schemas import Page, PermissionCreate, PermissionResponse, PermissionUpdate
from gatekeeper.services.authorization import AuthorizationResolver
from gatekeeper.services.pagination import normalize_page_params, total_pages

logger = logging.getLogger(__name__)


class PermissionService:
    def __init__(self, repo: Repository, resolver: AuthorizationResolver | None = None) -> None:
        self.repo = repo
        self.resolver = resolver or AuthorizationResolver(repo)

    def _require_permission(self, permission_id: int) -> Permission:
        permission = self.repo.permissions.get(permission_id)
        if permission is None:
            raise PermissionNotFoundError(f"Permission {permission_id} not found")
        return permission

    def _check_unique(self, code: str, name: str, exclude_id: int | None = None) -> None:
        if self.repo.permissions.exists_with("code", code, exclude_id=exclude_id):
            raise PermissionExistsError(f"Permission code '{code}' already exists")
        if self.repo.permissions.exists_with("name", name, exclude_id=exclude_id):
            raise PermissionExistsError(f"Permission name '{name}' already exists")

    def create_permission(self, data: PermissionCreate) -> PermissionResponse:
        self._check_unique(data.code, data.name)
        permission = Permission(code=data.code, name=data.name, description=data.description)
        recheck = functools.partial(self._check_unique, data.code, data.name)
        with on_write_conflict(recheck), self.repo.unit_of_work():
            self.repo.permissions.add(permission)
        logger.info("Created permission: permission_id=%s, code=%s", permission.id, permission.code)
        return PermissionResponse.model_validate(permission)

    def update_permission(self, permission_id: int, data: PermissionUpdate) -> PermissionResponse:
        permission = self._require_permission(permission_id)
        self._check_unique(data.code, data.name, exclude_id=permission_id)
        recheck = functools.partial(self._check_unique, data.code, data.name, permission_id)
        with on_write_conflict(recheck), self.repo.unit_of_work():
            permission.code = data.code
            permission.name = data.name
            permission.description = data.description
            self.repo.permissions.flush()
        logger.info("Updated permission: permission_id=%s", permission_id)
        return PermissionResponse.model_validate(permission)

    def delete_permission(self, permission_id: int) -> None:
        self.resolver.delete_permission(permission_id)

    def get_permission(self, permission_id: int) -> PermissionResponse:
        return PermissionResponse.model_validate(self._require_permission(permission_id))

    def list_permissions(
        self,
        page: int | None = None,
        page_size: int | None = None,
        keyword: str | None = None,
    ) -> Page[PermissionResponse]:
        page, page_size = normalize_page_params(page, page_size)
        permissions, total = self.repo.permissions.list_page(page, page_size, keyword)
        return Page[PermissionResponse](
            total=total,
            page=page,
            page_size=page_size,
            total_pages=total_pages(total, page_size),
            items=[PermissionResponse.model_validate(p) for p in permissions],
        )
