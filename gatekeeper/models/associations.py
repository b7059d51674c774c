"""Junction tables for the user-role and role-permission relations."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer

from gatekeeper.models.base import Base, utcnow


class UserRole(Base):
    """One row per role held by a user."""

    __tablename__ = "user_roles"

    user_id = Column(Integer, ForeignKey("users.id"), primary_key=True)
    role_id = Column(Integer, ForeignKey("roles.id"), primary_key=True, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)


class RolePermission(Base):
    """One row per permission granted to a role."""

    __tablename__ = "role_permissions"

    role_id = Column(Integer, ForeignKey("roles.id"), primary_key=True)
    permission_id = Column(Integer, ForeignKey("permissions.id"), primary_key=True, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
