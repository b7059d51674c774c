"""
Identity orchestration: login, token refresh, logout and user administration.

Composes the password hasher, token service and authorization resolver over one
request-scoped Repository. Returns response schemas so the routers only
translate HTTP.
"""

import functools
import logging

from gatekeeper.core.config import Settings, get_settings
from gatekeeper.core.errors import (
    EmailExistsError,
    GatekeeperError,
    IncompatibleHashVersionError,
    InvalidCredentialsError,
    InvalidHashError,
    TokenInvalidError,
    UsernameExistsError,
    UserNotFoundError,
)
from gatekeeper.core.passwords import PasswordHasher
from gatekeeper.core.tokens import TOKEN_TYPE_ACCESS, TOKEN_TYPE_REFRESH, TokenService
from gatekeeper.models import Role, User
from gatekeeper.repositories import Repository
from gatekeeper.repositories.base import on_write_conflict
from gatekeeper.schemas import (
    CheckPermissionResponse,
    LoginResponse,
    Page,
    RoleSimple,
    TokenResponse,
    UserCreate,
    UserResponse,
    UserUpdate,
)
from gatekeeper.services.authorization import AuthorizationResolver
from gatekeeper.services.pagination import normalize_page_params, total_pages

logger = logging.getLogger(__name__)


def user_to_response(user: User, roles: list[Role]) -> UserResponse:
    return UserResponse(
        id=user.id,
        username=user.username,
        email=user.email,
        created_at=user.created_at,
        updated_at=user.updated_at,
        roles=[RoleSimple.model_validate(role) for role in roles],
    )


class IdentityService:
    def __init__(
        self,
        repo: Repository,
        hasher: PasswordHasher,
        tokens: TokenService,
        resolver: AuthorizationResolver | None = None,
        settings: Settings | None = None,
    ) -> None:
        self.repo = repo
        self.hasher = hasher
        self.tokens = tokens
        self.resolver = resolver or AuthorizationResolver(repo)
        self.settings = settings or get_settings()

    def _require_user(self, user_id: int) -> User:
        user = self.repo.users.get(user_id)
        if user is None:
            raise UserNotFoundError(f"User {user_id} not found")
        return user

    def _to_response(self, user: User) -> UserResponse:
        return user_to_response(user, self.repo.relations.roles_of_user(user.id))

    # authentication

    def login(self, username: str, password: str) -> LoginResponse:
        """
        Authenticate by username and password and issue an access/refresh pair.

        Unknown username and wrong password raise the same InvalidCredentialsError;
        the unknown-user path still runs a full verification.
        """
        user = self.repo.users.get_by_username(username)
        if user is None:
            self.hasher.verify_password(password, self.hasher.dummy_hash)
            logger.warning("Login rejected: unknown username=%s", username)
            raise InvalidCredentialsError()

        try:
            verified = self.hasher.verify_password(password, user.password_hash)
        except (InvalidHashError, IncompatibleHashVersionError) as exc:
            logger.warning("Stored password hash unusable: user_id=%s (%s)", user.id, exc.code)
            raise InvalidCredentialsError() from exc
        if not verified:
            logger.warning("Login rejected: wrong password for user_id=%s", user.id)
            raise InvalidCredentialsError()

        access = self.tokens.issue_token(user.id, user.username, TOKEN_TYPE_ACCESS)
        refresh = self.tokens.issue_token(user.id, user.username, TOKEN_TYPE_REFRESH)
        with self.repo.unit_of_work():
            self.repo.refresh_tokens.add(user.id, refresh.claims.jti, refresh.claims.expires_at)
        logger.info("User logged in: user_id=%s", user.id)

        return LoginResponse(
            access_token=access.token,
            refresh_token=refresh.token,
            expires_in=self.tokens.access_expire_seconds,
            user=self._to_response(user),
        )

    def refresh_token(self, token: str) -> TokenResponse:
        """
        Exchange a refresh token for a new access token.

        The refresh token must be a recorded, unused, unrevoked one. With
        rotation enabled it is consumed and a new refresh token is returned too.
        """
        claims = self.tokens.validate_token(token, expected_type=TOKEN_TYPE_REFRESH)
        user = self._require_user(claims.user_id)

        with self.repo.unit_of_work():
            new_refresh = None
            if self.settings.REFRESH_TOKEN_ROTATION:
                # Check and consume in one statement: of two concurrent refreshes only one wins.
                if not self.repo.refresh_tokens.consume(claims.jti, user.id):
                    raise TokenInvalidError("Refresh token has been revoked or already used")
                new_refresh = self.tokens.issue_token(user.id, user.username, TOKEN_TYPE_REFRESH)
                self.repo.refresh_tokens.add(
                    user.id, new_refresh.claims.jti, new_refresh.claims.expires_at
                )
            else:
                record = self.repo.refresh_tokens.find_valid(claims.jti)
                if record is None or record.user_id != user.id:
                    raise TokenInvalidError("Refresh token has been revoked or already used")
            access = self.tokens.generate_token(user.id, user.username, TOKEN_TYPE_ACCESS)

        logger.info("Token refreshed: user_id=%s, rotated=%s", user.id, new_refresh is not None)
        return TokenResponse(
            access_token=access,
            refresh_token=new_refresh.token if new_refresh else None,
            expires_in=self.tokens.access_expire_seconds,
        )

    def logout(self, user_id: int) -> int:
        """Revoke every outstanding refresh token of the user. Returns how many."""
        with self.repo.unit_of_work():
            revoked = self.repo.refresh_tokens.revoke_for_user(user_id)
        logger.info("User logged out: user_id=%s, revoked_tokens=%s", user_id, revoked)
        return revoked

    # administration

    def _check_unique(self, username: str, email: str, exclude_id: int | None = None) -> None:
        if self.repo.users.exists_with("username", username, exclude_id=exclude_id):
            raise UsernameExistsError()
        if self.repo.users.exists_with("email", email, exclude_id=exclude_id):
            raise EmailExistsError()

    def create_user(self, data: UserCreate) -> UserResponse:
        self._check_unique(data.username, data.email)

        password_hash = self.hasher.hash_password(data.password)
        user = User(username=data.username, email=data.email, password_hash=password_hash)
        recheck = functools.partial(self._check_unique, data.username, data.email)

        if self.settings.STRICT_INITIAL_ASSIGNMENT:
            with on_write_conflict(recheck), self.repo.unit_of_work():
                self.repo.users.add(user)
                if data.role_ids:
                    self.resolver.assign_roles(user.id, data.role_ids)
        else:
            with on_write_conflict(recheck), self.repo.unit_of_work():
                self.repo.users.add(user)
            if data.role_ids:
                try:
                    self.resolver.assign_roles(user.id, data.role_ids)
                except GatekeeperError as exc:
                    # User stays created; the caller can retry the assignment.
                    logger.warning(
                        "Initial role assignment failed: user_id=%s, role_ids=%s, error=%s",
                        user.id,
                        data.role_ids,
                        exc.message,
                    )

        logger.info("Created user: user_id=%s, username=%s", user.id, user.username)
        return self._to_response(user)

    def update_user(self, user_id: int, data: UserUpdate) -> UserResponse:
        """Update profile fields; a given password is re-hashed, given role_ids replace the role set."""
        user = self._require_user(user_id)
        self._check_unique(data.username, data.email, exclude_id=user_id)

        password_hash = None
        if data.password:
            password_hash = self.hasher.hash_password(data.password)

        recheck = functools.partial(self._check_unique, data.username, data.email, user_id)
        with on_write_conflict(recheck), self.repo.unit_of_work():
            user.username = data.username
            user.email = data.email
            if password_hash is not None:
                user.password_hash = password_hash
            self.repo.users.flush()
            if data.role_ids is not None:
                self.resolver.replace_roles(user_id, data.role_ids)

        logger.info("Updated user: user_id=%s", user_id)
        return self._to_response(user)

    def delete_user(self, user_id: int) -> None:
        """Soft-delete a user, dropping its role memberships and refresh tokens."""
        with self.repo.unit_of_work():
            user = self._require_user(user_id)
            self.repo.relations.clear_user_roles(user_id)
            self.repo.refresh_tokens.revoke_for_user(user_id)
            self.repo.users.soft_delete(user)
        logger.info("Deleted user: user_id=%s", user_id)

    def get_user(self, user_id: int) -> UserResponse:
        return self._to_response(self._require_user(user_id))

    def list_users(
        self,
        page: int | None = None,
        page_size: int | None = None,
        keyword: str | None = None,
    ) -> Page[UserResponse]:
        page, page_size = normalize_page_params(page, page_size)
        users, total = self.repo.users.list_page(page, page_size, keyword)
        roles_by_user = self.repo.relations.roles_of_users(user.id for user in users)
        return Page[UserResponse](
            total=total,
            page=page,
            page_size=page_size,
            total_pages=total_pages(total, page_size),
            items=[user_to_response(user, roles_by_user.get(user.id, [])) for user in users],
        )

    # authorization views

    def get_profile(self, user_id: int) -> UserResponse:
        return self.get_user(user_id)

    def get_roles(self, user_id: int) -> list[RoleSimple]:
        return [RoleSimple.model_validate(role) for role in self.resolver.user_roles(user_id)]

    def check_permission(self, user_id: int, permission_code: str) -> CheckPermissionResponse:
        return CheckPermissionResponse(
            permission=permission_code,
            has_permission=self.resolver.check_permission(user_id, permission_code),
        )

    def assign_roles(self, user_id: int, role_ids: list[int]) -> list[RoleSimple]:
        self.resolver.assign_roles(user_id, role_ids)
        return self.get_roles(user_id)

    def remove_roles(self, user_id: int, role_ids: list[int]) -> list[RoleSimple]:
        self.resolver.remove_roles(user_id, role_ids)
        return self.get_roles(user_id)
