"""Role-based authorization graph: user -> roles -> permissions.

Grants are additive only. A user holds a permission when any of their active
roles is granted the active permission; there are no deny rules and no role
inheritance. Every mutation validates the parents it references and runs in
one unit of work, so a reader never sees half of a relation change.
"""

import logging
from collections.abc import Iterable

from gatekeeper.core.errors import (
    PermissionInUseError,
    PermissionNotFoundError,
    RoleInUseError,
    RoleNotFoundError,
    UserNotFoundError,
)
from gatekeeper.models import Permission, Role, User
from gatekeeper.repositories import Repository

logger = logging.getLogger(__name__)


def _unique(ids: Iterable[int]) -> list[int]:
    """Drop duplicates, keep first-seen order."""
    return list(dict.fromkeys(ids))


class AuthorizationResolver:
    def __init__(self, repo: Repository) -> None:
        self.repo = repo

    # existence guards

    def _require_user(self, user_id: int) -> User:
        user = self.repo.users.get(user_id)
        if user is None:
            raise UserNotFoundError(f"User {user_id} not found")
        return user

    def _require_role(self, role_id: int) -> Role:
        role = self.repo.roles.get(role_id)
        if role is None:
            raise RoleNotFoundError(f"Role {role_id} not found")
        return role

    def _require_permission(self, permission_id: int) -> Permission:
        permission = self.repo.permissions.get(permission_id)
        if permission is None:
            raise PermissionNotFoundError(f"Permission {permission_id} not found")
        return permission

    def _require_roles(self, role_ids: list[int]) -> None:
        found = {role.id for role in self.repo.roles.get_many(role_ids)}
        missing = [role_id for role_id in role_ids if role_id not in found]
        if missing:
            raise RoleNotFoundError(f"Roles not found: {missing}")

    def _require_permissions(self, permission_ids: list[int]) -> None:
        found = {p.id for p in self.repo.permissions.get_many(permission_ids)}
        missing = [pid for pid in permission_ids if pid not in found]
        if missing:
            raise PermissionNotFoundError(f"Permissions not found: {missing}")

    # user <-> role

    def assign_roles(self, user_id: int, role_ids: Iterable[int]) -> int:
        """Grant roles to a user. Already-held roles are skipped. Returns rows added."""
        role_ids = _unique(role_ids)
        with self.repo.unit_of_work():
            self._require_user(user_id)
            self._require_roles(role_ids)
            added = self.repo.relations.add_user_roles(user_id, role_ids)
        logger.info("Assigned roles to user: user_id=%s, role_ids=%s, added=%s", user_id, role_ids, added)
        return added

    def remove_roles(self, user_id: int, role_ids: Iterable[int]) -> int:
        role_ids = _unique(role_ids)
        with self.repo.unit_of_work():
            self._require_user(user_id)
            self._require_roles(role_ids)
            removed = self.repo.relations.remove_user_roles(user_id, role_ids)
        logger.info("Removed roles from user: user_id=%s, role_ids=%s, removed=%s", user_id, role_ids, removed)
        return removed

    def replace_roles(self, user_id: int, role_ids: Iterable[int]) -> None:
        """Make role_ids the user's complete role set (delete all, then add)."""
        role_ids = _unique(role_ids)
        with self.repo.unit_of_work():
            self._require_user(user_id)
            self._require_roles(role_ids)
            self.repo.relations.clear_user_roles(user_id)
            self.repo.relations.add_user_roles(user_id, role_ids)
        logger.info("Replaced roles of user: user_id=%s, role_ids=%s", user_id, role_ids)

    def user_roles(self, user_id: int) -> list[Role]:
        self._require_user(user_id)
        return self.repo.relations.roles_of_user(user_id)

    def has_role(self, user_id: int, role_name: str) -> bool:
        """True if the user holds an active role with this name (or code)."""
        return self.repo.relations.user_has_role(user_id, role_name)

    # role <-> permission

    def assign_permissions(self, role_id: int, permission_ids: Iterable[int]) -> int:
        """Grant permissions to a role. Already-granted permissions are skipped. Returns rows added."""
        permission_ids = _unique(permission_ids)
        with self.repo.unit_of_work():
            self._require_role(role_id)
            self._require_permissions(permission_ids)
            added = self.repo.relations.add_role_permissions(role_id, permission_ids)
        logger.info(
            "Assigned permissions to role: role_id=%s, permission_ids=%s, added=%s",
            role_id,
            permission_ids,
            added,
        )
        return added

    def remove_permissions(self, role_id: int, permission_ids: Iterable[int]) -> int:
        permission_ids = _unique(permission_ids)
        with self.repo.unit_of_work():
            self._require_role(role_id)
            self._require_permissions(permission_ids)
            removed = self.repo.relations.remove_role_permissions(role_id, permission_ids)
        logger.info(
            "Removed permissions from role: role_id=%s, permission_ids=%s, removed=%s",
            role_id,
            permission_ids,
            removed,
        )
        return removed

    def replace_permissions(self, role_id: int, permission_ids: Iterable[int]) -> None:
        """Make permission_ids the role's complete permission set (delete all, then add)."""
        permission_ids = _unique(permission_ids)
        with self.repo.unit_of_work():
            self._require_role(role_id)
            self._require_permissions(permission_ids)
            self.repo.relations.clear_role_permissions(role_id)
            self.repo.relations.add_role_permissions(role_id, permission_ids)
        logger.info("Replaced permissions of role: role_id=%s, permission_ids=%s", role_id, permission_ids)

    def role_permissions(self, role_id: int) -> list[Permission]:
        self._require_role(role_id)
        return self.repo.relations.permissions_of_role(role_id)

    def has_permission(self, role_id: int, permission_name: str) -> bool:
        """True if the role is granted an active permission with this name (or code)."""
        return self.repo.relations.role_has_permission(role_id, permission_name)

    # user -> permission

    def check_permission(self, user_id: int, permission_code: str) -> bool:
        """True if any role held by the user grants permission_code."""
        return self.repo.relations.user_has_permission(user_id, permission_code)

    # delete safety

    def delete_role(self, role_id: int) -> None:
        """
        Soft-delete a role nobody holds.

        Raises RoleInUseError while any active user holds it; the role then
        stays active. The role's permission grants are removed with it.
        """
        with self.repo.unit_of_work():
            role = self._require_role(role_id)
            holders = self.repo.relations.count_role_holders(role_id)
            if holders:
                raise RoleInUseError(f"Role {role_id} is held by {holders} user(s)")
            self.repo.relations.clear_role_permissions(role_id)
            # Rows left behind by soft-deleted users.
            self.repo.relations.clear_role_users(role_id)
            self.repo.roles.soft_delete(role)
        logger.info("Deleted role: role_id=%s, code=%s", role_id, role.code)

    def delete_permission(self, permission_id: int) -> None:
        """
        Soft-delete a permission no role holds.

        Raises PermissionInUseError while any active role is granted it.
        """
        with self.repo.unit_of_work():
            permission = self._require_permission(permission_id)
            holders = self.repo.relations.count_permission_holders(permission_id)
            if holders:
                raise PermissionInUseError(
                    f"Permission {permission_id} is granted to {holders} role(s)"
                )
            self.repo.permissions.soft_delete(permission)
        logger.info("Deleted permission: permission_id=%s, code=%s", permission_id, permission.code)
