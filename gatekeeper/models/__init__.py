"""SQLAlchemy ORM models."""

from gatekeeper.models.associations import RolePermission, UserRole
from gatekeeper.models.base import Base
from gatekeeper.models.permission import Permission
from gatekeeper.models.refresh_token import UserRefreshToken
from gatekeeper.models.role import Role
from gatekeeper.models.user import User

__all__ = [
    "Base",
    "Permission",
    "Role",
    "RolePermission",
    "User",
    "UserRefreshToken",
    "UserRole",
]
