"""Persistence for issued refresh tokens (by jti)."""

from datetime import datetime

from sqlalchemy.orm import Session

from gatekeeper.models import UserRefreshToken
from gatekeeper.models.base import utcnow
from gatekeeper.repositories.base import db_operation


class RefreshTokenRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    @db_operation
    def add(self, user_id: int, jti: str, expires_at: datetime) -> UserRefreshToken:
        record = UserRefreshToken(user_id=user_id, jti=jti, expires_at=expires_at)
        self.session.add(record)
        self.session.flush()
        return record

    @db_operation
    def find_valid(self, jti: str) -> UserRefreshToken | None:
        """The record for jti if it is unused, unrevoked and unexpired."""
        return (
            self.session.query(UserRefreshToken)
            .filter(
                UserRefreshToken.jti == jti,
                UserRefreshToken.used.is_(False),
                UserRefreshToken.revoked.is_(False),
                UserRefreshToken.expires_at > utcnow(),
            )
            .first()
        )

    @db_operation
    def consume(self, jti: str, user_id: int) -> bool:
        """
        Mark a valid record used in one conditional UPDATE.

        False when no live record of this user matches, for instance because a
        concurrent refresh consumed it first.
        """
        consumed = (
            self.session.query(UserRefreshToken)
            .filter(
                UserRefreshToken.jti == jti,
                UserRefreshToken.user_id == user_id,
                UserRefreshToken.used.is_(False),
                UserRefreshToken.revoked.is_(False),
                UserRefreshToken.expires_at > utcnow(),
            )
            .update({UserRefreshToken.used: True}, synchronize_session=False)
        )
        return consumed == 1

    @db_operation
    def revoke_for_user(self, user_id: int) -> int:
        return (
            self.session.query(UserRefreshToken)
            .filter(
                UserRefreshToken.user_id == user_id,
                UserRefreshToken.used.is_(False),
                UserRefreshToken.revoked.is_(False),
            )
            .update({UserRefreshToken.revoked: True}, synchronize_session=False)
        )
