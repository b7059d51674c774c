"""Junction-table persistence for user-role and role-permission membership.

Rows are inserted and deleted with explicit statements so every call touches
exactly the pairs it names. Callers run these inside a unit of work.
"""

from collections import defaultdict
from collections.abc import Iterable

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from gatekeeper.models import Permission, Role, RolePermission, User, UserRole
from gatekeeper.repositories.base import db_operation, not_deleted


class RelationRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    # user <-> role

    @db_operation
    def user_role_ids(self, user_id: int) -> set[int]:
        rows = self.session.query(UserRole.role_id).filter(UserRole.user_id == user_id)
        return {role_id for (role_id,) in rows}

    @db_operation
    def add_user_roles(self, user_id: int, role_ids: Iterable[int]) -> int:
        """Insert the missing (user, role) pairs; existing pairs are left alone. Returns rows added."""
        existing = self.user_role_ids(user_id)
        added = 0
        for role_id in role_ids:
            if role_id in existing:
                continue
            self.session.add(UserRole(user_id=user_id, role_id=role_id))
            existing.add(role_id)
            added += 1
        self.session.flush()
        return added

    @db_operation
    def remove_user_roles(self, user_id: int, role_ids: Iterable[int]) -> int:
        role_ids = list(role_ids)
        if not role_ids:
            return 0
        return (
            self.session.query(UserRole)
            .filter(UserRole.user_id == user_id, UserRole.role_id.in_(role_ids))
            .delete(synchronize_session=False)
        )

    @db_operation
    def clear_user_roles(self, user_id: int) -> int:
        return (
            self.session.query(UserRole)
            .filter(UserRole.user_id == user_id)
            .delete(synchronize_session=False)
        )

    @db_operation
    def clear_role_users(self, role_id: int) -> int:
        return (
            self.session.query(UserRole)
            .filter(UserRole.role_id == role_id)
            .delete(synchronize_session=False)
        )

    @db_operation
    def roles_of_user(self, user_id: int) -> list[Role]:
        return (
            self.session.query(Role)
            .join(UserRole, UserRole.role_id == Role.id)
            .filter(UserRole.user_id == user_id, not_deleted(Role))
            .order_by(Role.id)
            .all()
        )

    @db_operation
    def roles_of_users(self, user_ids: Iterable[int]) -> dict[int, list[Role]]:
        """Active roles per user for a batch of users (one query)."""
        user_ids = list(user_ids)
        result: dict[int, list[Role]] = defaultdict(list)
        if not user_ids:
            return result
        rows = (
            self.session.query(UserRole.user_id, Role)
            .join(Role, Role.id == UserRole.role_id)
            .filter(UserRole.user_id.in_(user_ids), not_deleted(Role))
            .order_by(Role.id)
        )
        for user_id, role in rows:
            result[user_id].append(role)
        return result

    @db_operation
    def count_role_holders(self, role_id: int) -> int:
        """Active users currently holding the role."""
        return (
            self.session.query(func.count(UserRole.user_id))
            .join(User, User.id == UserRole.user_id)
            .filter(UserRole.role_id == role_id, not_deleted(User))
            .scalar()
        )

    @db_operation
    def user_has_role(self, user_id: int, role_name: str) -> bool:
        query = (
            self.session.query(UserRole)
            .join(Role, Role.id == UserRole.role_id)
            .filter(
                UserRole.user_id == user_id,
                not_deleted(Role),
                or_(Role.name == role_name, Role.code == role_name),
            )
        )
        return self.session.query(query.exists()).scalar()

    # role <-> permission

    @db_operation
    def role_permission_ids(self, role_id: int) -> set[int]:
        rows = self.session.query(RolePermission.permission_id).filter(
            RolePermission.role_id == role_id
        )
        return {permission_id for (permission_id,) in rows}

    @db_operation
    def add_role_permissions(self, role_id: int, permission_ids: Iterable[int]) -> int:
        """Insert the missing (role, permission) pairs. Returns rows added."""
        existing = self.role_permission_ids(role_id)
        added = 0
        for permission_id in permission_ids:
            if permission_id in existing:
                continue
            self.session.add(RolePermission(role_id=role_id, permission_id=permission_id))
            existing.add(permission_id)
            added += 1
        self.session.flush()
        return added

    @db_operation
    def remove_role_permissions(self, role_id: int, permission_ids: Iterable[int]) -> int:
        permission_ids = list(permission_ids)
        if not permission_ids:
            return 0
        return (
            self.session.query(RolePermission)
            .filter(
                RolePermission.role_id == role_id,
                RolePermission.permission_id.in_(permission_ids),
            )
            .delete(synchronize_session=False)
        )

    @db_operation
    def clear_role_permissions(self, role_id: int) -> int:
        return (
            self.session.query(RolePermission)
            .filter(RolePermission.role_id == role_id)
            .delete(synchronize_session=False)
        )

    @db_operation
    def permissions_of_role(self, role_id: int) -> list[Permission]:
        return (
            self.session.query(Permission)
            .join(RolePermission, RolePermission.permission_id == Permission.id)
            .filter(RolePermission.role_id == role_id, not_deleted(Permission))
            .order_by(Permission.id)
            .all()
        )

    @db_operation
    def permissions_of_roles(self, role_ids: Iterable[int]) -> dict[int, list[Permission]]:
        """Active permissions per role for a batch of roles (one query)."""
        role_ids = list(role_ids)
        result: dict[int, list[Permission]] = defaultdict(list)
        if not role_ids:
            return result
        rows = (
            self.session.query(RolePermission.role_id, Permission)
            .join(Permission, Permission.id == RolePermission.permission_id)
            .filter(RolePermission.role_id.in_(role_ids), not_deleted(Permission))
            .order_by(Permission.id)
        )
        for role_id, permission in rows:
            result[role_id].append(permission)
        return result

    @db_operation
    def count_permission_holders(self, permission_id: int) -> int:
        """Active roles currently granted the permission."""
        return (
            self.session.query(func.count(RolePermission.role_id))
            .join(Role, Role.id == RolePermission.role_id)
            .filter(RolePermission.permission_id == permission_id, not_deleted(Role))
            .scalar()
        )

    @db_operation
    def role_has_permission(self, role_id: int, permission_name: str) -> bool:
        query = (
            self.session.query(RolePermission)
            .join(Permission, Permission.id == RolePermission.permission_id)
            .filter(
                RolePermission.role_id == role_id,
                not_deleted(Permission),
                or_(Permission.name == permission_name, Permission.code == permission_name),
            )
        )
        return self.session.query(query.exists()).scalar()

    # user -> role -> permission

    @db_operation
    def user_has_permission(self, user_id: int, permission_code: str) -> bool:
        """True if any active role held by the user grants the active permission code."""
        query = (
            self.session.query(UserRole)
            .join(Role, Role.id == UserRole.role_id)
            .join(RolePermission, RolePermission.role_id == Role.id)
            .join(Permission, Permission.id == RolePermission.permission_id)
            .filter(
                UserRole.user_id == user_id,
                not_deleted(Role),
                not_deleted(Permission),
                Permission.code == permission_code,
            )
        )
        return self.session.query(query.exists()).scalar()
