"""ORM model for permissions."""

from sqlalchemy import Column, Index, Integer, String, Text, text

from gatekeeper.models.base import Base, SoftDeleteMixin, TimestampMixin


class Permission(TimestampMixin, SoftDeleteMixin, Base):
    """
    A grantable capability identified by a code such as ``user:list``.

    code and name are unique among active permissions.
    """

    __tablename__ = "permissions"
    __table_args__ = (
        Index(
            "uq_permissions_code_active",
            "code",
            unique=True,
            postgresql_where=text("deleted_at IS NULL"),
            sqlite_where=text("deleted_at IS NULL"),
        ),
        Index(
            "uq_permissions_name_active",
            "name",
            unique=True,
            postgresql_where=text("deleted_at IS NULL"),
            sqlite_where=text("deleted_at IS NULL"),
        ),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    code = Column(String(100), nullable=False)
    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=False, default="")
