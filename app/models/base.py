"""SQLAlchemy declarative Base for the credential store."""

from sqlalchemy import MetaData
from sqlalchemy.orm import DeclarativeBase

# Index names match the ones created by the initial migration (ix_users_email, ...).
NAMING_CONVENTION = {
    "ix": "ix_%(table_name)s_%(column_0_name)s",
}


class Base(DeclarativeBase):
    """Declarative base for users, roles, permissions and token models."""

    metadata = MetaData(naming_convention=NAMING_CONVENTION)
