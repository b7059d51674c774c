"""Persistence layer: per-entity repositories behind one unit of work."""

from contextlib import AbstractContextManager

from sqlalchemy.orm import Session

from gatekeeper.repositories.base import UnitOfWork
from gatekeeper.repositories.permissions import PermissionRepository
from gatekeeper.repositories.refresh_tokens import RefreshTokenRepository
from gatekeeper.repositories.relations import RelationRepository
from gatekeeper.repositories.roles import RoleRepository
from gatekeeper.repositories.users import UserRepository


class Repository:
    """
    Everything the services read or write, bound to one session.

    Construct one per request and pass it into the services; mutations are
    wrapped in ``with repo.unit_of_work():``.
    """

    def __init__(self, session: Session) -> None:
        self.session = session
        self._uow = UnitOfWork(session)
        self.users = UserRepository(session)
        self.roles = RoleRepository(session)
        self.permissions = PermissionRepository(session)
        self.relations = RelationRepository(session)
        self.refresh_tokens = RefreshTokenRepository(session)

    def unit_of_work(self) -> AbstractContextManager[Session]:
        return self._uow.begin()


__all__ = [
    "PermissionRepository",
    "RefreshTokenRepository",
    "RelationRepository",
    "Repository",
    "RoleRepository",
    "UnitOfWork",
    "UserRepository",
]
