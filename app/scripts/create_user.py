"""
Create a user with explicit roles (e.g. the first Super Administrator). Run from project root:
  python -m app.scripts.create_user USERNAME EMAIL PASSWORD [--role NAME ...]
Example:
  python -m app.scripts.create_user root root@example.com your-secure-password --role "Super Administrator"

Permissions and roles are seeded first if the tables are empty.
"""
import argparse
import sys

from pydantic import ValidationError

from app.core.config import get_settings
from app.core.database import SessionLocal
from app.core.errors import ServiceError
from app.core.logging import configure_logging
from app.schemas.user import UserCreateRequest
from app.services import credential_store
from app.services.bootstrap import bootstrap
from app.services.users import create_user


def main() -> int:
    parser = argparse.ArgumentParser(description="Create a Gatekeeper user.")
    parser.add_argument("username", help="Username (1-255 chars)")
    parser.add_argument("email", help="Email address")
    parser.add_argument("password", help="Password (length per PASSWORD_MIN_LENGTH/PASSWORD_MAX_LENGTH)")
    parser.add_argument(
        "--role",
        dest="roles",
        action="append",
        default=[],
        help="Role name to assign (repeatable). Defaults to DEFAULT_ROLE_NAME.",
    )
    args = parser.parse_args()

    settings = get_settings()
    configure_logging(settings.LOG_LEVEL)
    db = SessionLocal()
    try:
        bootstrap(db, settings)
        role_ids = []
        for name in args.roles:
            role = credential_store.get_role_by_name(db, name)
            if role is None:
                print(f"Unknown role '{name}'.", file=sys.stderr)
                return 1
            role_ids.append(role.id)
        try:
            body = UserCreateRequest(
                username=args.username,
                email=args.email,
                password=args.password,
                role_ids=role_ids or None,
            )
        except ValidationError as e:
            print(f"Invalid input: {e.errors()[0]['msg']}", file=sys.stderr)
            return 1
        try:
            user = create_user(db, body, settings)
        except ServiceError as e:
            print(e.message, file=sys.stderr)
            return 1
        role_names = ", ".join(role.name for role in user.roles)
        print(f"Created user '{user.username}' with roles: {role_names}.")
        return 0
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
