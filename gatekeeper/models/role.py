"""ORM model for roles."""

from sqlalchemy import Column, Index, Integer, String, Text, text

from gatekeeper.models.base import Base, SoftDeleteMixin, TimestampMixin


class Role(TimestampMixin, SoftDeleteMixin, Base):
    """Named bundle of permissions granted to users. code and name are unique among active roles."""

    __tablename__ = "roles"
    __table_args__ = (
        Index(
            "uq_roles_code_active",
            "code",
            unique=True,
            postgresql_where=text("deleted_at IS NULL"),
            sqlite_where=text("deleted_at IS NULL"),
        ),
        Index(
            "uq_roles_name_active",
            "name",
            unique=True,
            postgresql_where=text("deleted_at IS NULL"),
            sqlite_where=text("deleted_at IS NULL"),
        ),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    code = Column(String(50), nullable=False)
    name = Column(String(50), nullable=False)
    description = Column(Text, nullable=False, default="")
