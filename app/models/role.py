"""ORM models for roles and the permissions they bundle."""

from sqlalchemy import Column, ForeignKey, Integer, String, Table, UniqueConstraint
from sqlalchemy.orm import relationship

from app.models.base import Base

role_permissions = Table(
    "role_permissions",
    Base.metadata,
    Column("role_id", Integer, ForeignKey("roles.id", ondelete="CASCADE"), primary_key=True),
    Column(
        "permission_id",
        Integer,
        ForeignKey("permissions.id", ondelete="CASCADE"),
        primary_key=True,
    ),
)


class Permission(Base):
    """
    An atomic (resource, action) capability, e.g. ("user", "create").

    Seeded once at bootstrap; the closed set of actions the system recognizes.
    """

    __tablename__ = "permissions"
    __table_args__ = (UniqueConstraint("resource", "action", name="uq_permissions_resource_action"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    resource = Column(String(64), nullable=False)
    action = Column(String(64), nullable=False)


class Role(Base):
    """A named bundle of permissions assigned to users."""

    __tablename__ = "roles"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(64), nullable=False, unique=True, index=True)

    permissions = relationship(
        "Permission",
        secondary=role_permissions,
        order_by="Permission.id",
    )
