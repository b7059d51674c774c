"""FastAPI dependency providers: one Repository per request, process-wide hasher and token service."""

from functools import lru_cache
from typing import Annotated

from fastapi import Depends
from sqlalchemy.orm import Session

from gatekeeper.core.config import Settings, get_settings
from gatekeeper.core.database import get_db
from gatekeeper.core.passwords import PasswordHasher
from gatekeeper.core.tokens import TokenService
from gatekeeper.repositories import Repository
from gatekeeper.services.authorization import AuthorizationResolver
from gatekeeper.services.identity import IdentityService
from gatekeeper.services.permissions import PermissionService
from gatekeeper.services.roles import RoleService


@lru_cache
def get_password_hasher() -> PasswordHasher:
    return PasswordHasher.from_settings(get_settings())


@lru_cache
def get_token_service() -> TokenService:
    return TokenService.from_settings(get_settings())


def get_repository(db: Annotated[Session, Depends(get_db)]) -> Repository:
    return Repository(db)


def get_resolver(repo: Annotated[Repository, Depends(get_repository)]) -> AuthorizationResolver:
    return AuthorizationResolver(repo)


def get_identity_service(
    repo: Annotated[Repository, Depends(get_repository)],
    hasher: Annotated[PasswordHasher, Depends(get_password_hasher)],
    tokens: Annotated[TokenService, Depends(get_token_service)],
    resolver: Annotated[AuthorizationResolver, Depends(get_resolver)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> IdentityService:
    return IdentityService(repo, hasher, tokens, resolver=resolver, settings=settings)


def get_role_service(
    repo: Annotated[Repository, Depends(get_repository)],
    resolver: Annotated[AuthorizationResolver, Depends(get_resolver)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> RoleService:
    return RoleService(repo, resolver=resolver, settings=settings)


def get_permission_service(
    repo: Annotated[Repository, Depends(get_repository)],
    resolver: Annotated[AuthorizationResolver, Depends(get_resolver)],
) -> PermissionService:
    return PermissionService(repo, resolver=resolver)
