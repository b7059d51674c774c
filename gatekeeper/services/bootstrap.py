"""Built-in permission catalogue and the admin role that holds all of it."""

import logging

from gatekeeper.models import Permission, Role
from gatekeeper.repositories import Repository
from gatekeeper.services.authorization import AuthorizationResolver

logger = logging.getLogger(__name__)

ADMIN_ROLE_CODE = "admin"
ADMIN_ROLE_NAME = "Administrator"

# (code, name) for every permission the HTTP guards check.
PERMISSION_CATALOGUE: tuple[tuple[str, str], ...] = (
    ("user:list", "List users"),
    ("user:create", "Create users"),
    ("user:view", "View users"),
    ("user:update", "Update users"),
    ("user:delete", "Delete users"),
    ("user:assign-role", "Assign roles to users"),
    ("role:list", "List roles"),
    ("role:create", "Create roles"),
    ("role:view", "View roles"),
    ("role:update", "Update roles"),
    ("role:delete", "Delete roles"),
    ("role:assign-permission", "Assign permissions to roles"),
    ("permission:list", "List permissions"),
    ("permission:create", "Create permissions"),
    ("permission:view", "View permissions"),
    ("permission:update", "Update permissions"),
    ("permission:delete", "Delete permissions"),
)


def ensure_permission_catalogue(repo: Repository) -> list[Permission]:
    """Create any catalogue permission that does not exist yet. Returns the whole catalogue."""
    permissions = []
    with repo.unit_of_work():
        for code, name in PERMISSION_CATALOGUE:
            permission = repo.permissions.get_by_code(code)
            if permission is None:
                permission = repo.permissions.add(Permission(code=code, name=name))
                logger.info("Created permission: code=%s", code)
            permissions.append(permission)
    return permissions


def ensure_admin_role(repo: Repository) -> Role:
    """The admin role, created if missing, granted every catalogue permission."""
    resolver = AuthorizationResolver(repo)
    with repo.unit_of_work():
        permissions = ensure_permission_catalogue(repo)
        role = repo.roles.get_by_code(ADMIN_ROLE_CODE)
        if role is None:
            role = repo.roles.add(
                Role(
                    code=ADMIN_ROLE_CODE,
                    name=ADMIN_ROLE_NAME,
                    description="Full access to user, role and permission administration",
                )
            )
            logger.info("Created role: code=%s", ADMIN_ROLE_CODE)
        resolver.assign_permissions(role.id, [p.id for p in permissions])
    return role
