"""Request/response schemas for auth endpoints."""

from pydantic import BaseModel, Field

from gatekeeper.schemas.user import UserResponse

USERNAME_MIN_LEN = 3
USERNAME_MAX_LEN = 32
PASSWORD_MIN_LEN = 6
PASSWORD_MAX_LEN = 128


class LoginRequest(BaseModel):
    """Credentials for login."""

    username: str = Field(
        ..., min_length=USERNAME_MIN_LEN, max_length=USERNAME_MAX_LEN, description="Username"
    )
    password: str = Field(
        ..., min_length=PASSWORD_MIN_LEN, max_length=PASSWORD_MAX_LEN, description="Password"
    )


class RefreshTokenRequest(BaseModel):
    refresh_token: str = Field(..., min_length=1, description="Refresh token issued at login")


class TokenResponse(BaseModel):
    """Tokens returned by login and refresh."""

    access_token: str = Field(..., description="JWT access token")
    refresh_token: str | None = Field(
        default=None, description="JWT refresh token (absent when refresh does not rotate)"
    )
    token_type: str = Field(default="bearer", description="Token type")
    expires_in: int = Field(..., description="Access token lifetime in seconds")


class LoginResponse(TokenResponse):
    """Tokens plus the authenticated user (never includes the password digest)."""

    user: UserResponse


class CheckPermissionRequest(BaseModel):
    permission: str = Field(..., min_length=1, max_length=100, description="Permission code")


class CheckPermissionResponse(BaseModel):
    permission: str
    has_permission: bool


class CurrentUser(BaseModel):
    """Authenticated user (id, username) for dependency injection."""

    id: int
    username: str
