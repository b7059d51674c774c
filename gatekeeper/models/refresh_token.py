"""ORM model for issued refresh tokens."""

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String

from gatekeeper.models.base import Base, utcnow


class UserRefreshToken(Base):
    """
    Record of a refresh token handed out at login, keyed by its jti claim.

    The signed token itself is never stored. used is set when rotation consumes
    the token; revoked is set on logout.
    """

    __tablename__ = "user_refresh_tokens"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    jti = Column(String(64), nullable=False, unique=True)
    expires_at = Column(DateTime(timezone=True), nullable=False, index=True)
    used = Column(Boolean, nullable=False, default=False)
    revoked = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
