"""Role administration: CRUD plus the role's permission grants."""

import functools
import logging

from gatekeeper.core.config import Settings, get_settings
from gatekeeper.core.errors import GatekeeperError, RoleExistsError, RoleNotFoundError
from gatekeeper.models import Permission, Role
from gatekeeper.repositories import Repository
from gatekeeper.repositories.base import on_write_conflict
from gatekeeper.schemas import Page, PermissionSimple, RoleCreate, RoleResponse, RoleUpdate
from gatekeeper.services.authorization import AuthorizationResolver
from gatekeeper.services.pagination import normalize_page_params, total_pages

logger = logging.getLogger(__name__)


def role_to_response(role: Role, permissions: list[Permission]) -> RoleResponse:
    return RoleResponse(
        id=role.id,
        code=role.code,
        name=role.name,
        description=role.description or "",
        created_at=role.created_at,
        updated_at=role.updated_at,
        permissions=[PermissionSimple.model_validate(p) for p in permissions],
    )


class RoleService:
    def __init__(
        self,
        repo: Repository,
        resolver: AuthorizationResolver | None = None,
        settings: Settings | None = None,
    ) -> None:
        self.repo = repo
        self.resolver = resolver or AuthorizationResolver(repo)
        self.settings = settings or get_settings()

    def _require_role(self, role_id: int) -> Role:
        role = self.repo.roles.get(role_id)
        if role is None:
            raise RoleNotFoundError(f"Role {role_id} not found")
        return role

    def _check_unique(self, code: str, name: str, exclude_id: int | None = None) -> None:
        if self.repo.roles.exists_with("code", code, exclude_id=exclude_id):
            raise RoleExistsError(f"Role code '{code}' already exists")
        if self.repo.roles.exists_with("name", name, exclude_id=exclude_id):
            raise RoleExistsError(f"Role name '{name}' already exists")

    def _to_response(self, role: Role) -> RoleResponse:
        return role_to_response(role, self.repo.relations.permissions_of_role(role.id))

    def create_role(self, data: RoleCreate) -> RoleResponse:
        self._check_unique(data.code, data.name)
        role = Role(code=data.code, name=data.name, description=data.description)
        recheck = functools.partial(self._check_unique, data.code, data.name)

        if self.settings.STRICT_INITIAL_ASSIGNMENT:
            with on_write_conflict(recheck), self.repo.unit_of_work():
                self.repo.roles.add(role)
                if data.permission_ids:
                    self.resolver.assign_permissions(role.id, data.permission_ids)
        else:
            with on_write_conflict(recheck), self.repo.unit_of_work():
                self.repo.roles.add(role)
            if data.permission_ids:
                try:
                    self.resolver.assign_permissions(role.id, data.permission_ids)
                except GatekeeperError as exc:
                    logger.warning(
                        "Initial permission assignment failed: role_id=%s, permission_ids=%s, error=%s",
                        role.id,
                        data.permission_ids,
                        exc.message,
                    )

        logger.info("Created role: role_id=%s, code=%s", role.id, role.code)
        return self._to_response(role)

    def update_role(self, role_id: int, data: RoleUpdate) -> RoleResponse:
        role = self._require_role(role_id)
        self._check_unique(data.code, data.name, exclude_id=role_id)
        recheck = functools.partial(self._check_unique, data.code, data.name, role_id)
        with on_write_conflict(recheck), self.repo.unit_of_work():
            role.code = data.code
            role.name = data.name
            role.description = data.description
            self.repo.roles.flush()
            if data.permission_ids is not None:
                self.resolver.replace_permissions(role_id, data.permission_ids)
        logger.info("Updated role: role_id=%s", role_id)
        return self._to_response(role)

    def delete_role(self, role_id: int) -> None:
        self.resolver.delete_role(role_id)

    def get_role(self, role_id: int) -> RoleResponse:
        return self._to_response(self._require_role(role_id))

    def list_roles(
        self,
        page: int | None = None,
        page_size: int | None = None,
        keyword: str | None = None,
    ) -> Page[RoleResponse]:
        page, page_size = normalize_page_params(page, page_size)
        roles, total = self.repo.roles.list_page(page, page_size, keyword)
        permissions_by_role = self.repo.relations.permissions_of_roles(role.id for role in roles)
        return Page[RoleResponse](
            total=total,
            page=page,
            page_size=page_size,
            total_pages=total_pages(total, page_size),
            items=[role_to_response(role, permissions_by_role.get(role.id, [])) for role in roles],
        )

    def list_permissions(self, role_id: int) -> list[PermissionSimple]:
        return [PermissionSimple.model_validate(p) for p in self.resolver.role_permissions(role_id)]

    def assign_permissions(self, role_id: int, permission_ids: list[int]) -> list[PermissionSimple]:
        self.resolver.assign_permissions(role_id, permission_ids)
        return self.list_permissions(role_id)

    def remove_permissions(self, role_id: int, permission_ids: list[int]) -> list[PermissionSimple]:
        self.resolver.remove_permissions(role_id, permission_ids)
        return self.list_permissions(role_id)
