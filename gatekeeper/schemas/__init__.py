"""Pydantic request/response schemas."""

from gatekeeper.schemas.auth import (
    CheckPermissionRequest,
    CheckPermissionResponse,
    CurrentUser,
    LoginRequest,
    LoginResponse,
    RefreshTokenRequest,
    TokenResponse,
)
from gatekeeper.schemas.common import (
    MessageResponse,
    Page,
    PermissionSimple,
    RoleSimple,
)
from gatekeeper.schemas.health import HealthResponse
from gatekeeper.schemas.permission import (
    PermissionCreate,
    PermissionResponse,
    PermissionUpdate,
)
from gatekeeper.schemas.role import (
    PermissionIdsRequest,
    RoleCreate,
    RoleResponse,
    RoleUpdate,
)
from gatekeeper.schemas.user import RoleIdsRequest, UserCreate, UserResponse, UserUpdate

__all__ = [
    "CheckPermissionRequest",
    "CheckPermissionResponse",
    "CurrentUser",
    "HealthResponse",
    "LoginRequest",
    "LoginResponse",
    "MessageResponse",
    "Page",
    "PermissionCreate",
    "PermissionIdsRequest",
    "PermissionResponse",
    "PermissionSimple",
    "PermissionUpdate",
    "RefreshTokenRequest",
    "RoleCreate",
    "RoleIdsRequest",
    "RoleResponse",
    "RoleSimple",
    "RoleUpdate",
    "TokenResponse",
    "UserCreate",
    "UserResponse",
    "UserUpdate",
]
