"""Shared helpers: an in-memory SQLite credential store seeded with the default permissions and roles."""

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.config import get_settings
from app.core.security import hash_password
from app.models import Base, Role, User
from app.services.bootstrap import bootstrap


def make_session_factory() -> sessionmaker:
    """Fresh in-memory database per call; StaticPool keeps every session on the same connection."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


def seeded_session() -> Session:
    """Session on a new database with permissions and roles seeded (no users)."""
    session = make_session_factory()()
    bootstrap(session, get_settings())
    return session


def add_user(
    session: Session,
    username: str,
    password: str = "secret-pw",
    roles: tuple[str, ...] = ("User",),
    email: str | None = None,
    confirmed: bool = False,
) -> User:
    """Insert a user directly (bypassing workflows) with the named roles and commit."""
    role_rows = session.query(Role).filter(Role.name.in_(roles)).all()
    user = User(
        username=username,
        email=email or f"{username}@example.com",
        password_hash=hash_password(password),
        first_name=username.capitalize(),
        last_name="Tester",
        confirmed=confirmed,
        roles=role_rows,
    )
    session.add(user)
    session.commit()
    return user
