"""Login, refresh, logout and profile endpoints plus the auth dependencies (get_current_user, RequirePermission)."""

from typing import Annotated

from fastapi import APIRouter, Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from gatekeeper.api.deps import (
    get_identity_service,
    get_repository,
    get_resolver,
    get_token_service,
)
from gatekeeper.core.errors import NotAuthenticatedError, PermissionDeniedError, TokenInvalidError
from gatekeeper.core.tokens import TOKEN_TYPE_ACCESS, TokenService
from gatekeeper.repositories import Repository
from gatekeeper.schemas.auth import (
    CheckPermissionRequest,
    CheckPermissionResponse,
    CurrentUser,
    LoginRequest,
    LoginResponse,
    RefreshTokenRequest,
    TokenResponse,
)
from gatekeeper.schemas.common import MessageResponse
from gatekeeper.schemas.user import UserResponse
from gatekeeper.services.authorization import AuthorizationResolver
from gatekeeper.services.identity import IdentityService

router = APIRouter()
security = HTTPBearer(auto_error=False)


def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    tokens: Annotated[TokenService, Depends(get_token_service)],
    repo: Annotated[Repository, Depends(get_repository)],
) -> CurrentUser:
    """Dependency: require a valid Bearer access token and return the current user.

    Failures raise 401 domain errors (TokenError subclasses or NotAuthenticatedError),
    rendered by the app-wide GatekeeperError handler.
    """
    if credentials is None:
        raise NotAuthenticatedError()
    claims = tokens.validate_token(credentials.credentials, expected_type=TOKEN_TYPE_ACCESS)
    user = repo.users.get(claims.user_id)
    if user is None:
        raise TokenInvalidError("Token subject no longer exists")
    return CurrentUser(id=user.id, username=user.username)


class RequirePermission:
    """
    Dependency requiring the current user to hold a permission code.

    Usage:
        @router.get("", dependencies=[Depends(RequirePermission("user:list"))])

    Raises 401 without a valid access token and 403 when the permission is missing.
    """

    def __init__(self, permission_code: str) -> None:
        self.permission_code = permission_code

    def __call__(
        self,
        current_user: Annotated[CurrentUser, Depends(get_current_user)],
        resolver: Annotated[AuthorizationResolver, Depends(get_resolver)],
    ) -> CurrentUser:
        if not resolver.check_permission(current_user.id, self.permission_code):
            raise PermissionDeniedError(f"Permission '{self.permission_code}' required")
        return current_user


@router.post("/login", response_model=LoginResponse)
def login(
    body: LoginRequest,
    service: Annotated[IdentityService, Depends(get_identity_service)],
) -> LoginResponse:
    """
    Authenticate with username and password; returns access and refresh tokens.
    Include the access token in the Authorization header as: Bearer <access_token>
    """
    return service.login(body.username, body.password)


@router.post("/refresh", response_model=TokenResponse)
def refresh(
    body: RefreshTokenRequest,
    service: Annotated[IdentityService, Depends(get_identity_service)],
) -> TokenResponse:
    """Exchange a refresh token for a new access token."""
    return service.refresh_token(body.refresh_token)


@router.post("/logout", response_model=MessageResponse)
def logout(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    service: Annotated[IdentityService, Depends(get_identity_service)],
) -> MessageResponse:
    """Revoke the caller's refresh tokens. Access tokens stay valid until they expire."""
    service.logout(current_user.id)
    return MessageResponse(message="Logged out")


@router.get("/profile", response_model=UserResponse)
def profile(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    service: Annotated[IdentityService, Depends(get_identity_service)],
) -> UserResponse:
    return service.get_profile(current_user.id)


@router.post("/check-permission", response_model=CheckPermissionResponse)
def check_permission(
    body: CheckPermissionRequest,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    service: Annotated[IdentityService, Depends(get_identity_service)],
) -> CheckPermissionResponse:
    """Whether the caller holds the given permission code through any of their roles."""
    return service.check_permission(current_user.id, body.permission)
