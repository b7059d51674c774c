"""
Create a user (e.g. the first admin). Run from project root:
  python -m gatekeeper.scripts.create_user USERNAME EMAIL PASSWORD [--admin]
Example:
  python -m gatekeeper.scripts.create_user admin admin@example.com your-secure-password --admin

--admin makes sure the built-in permissions and the admin role exist, then
grants that role to the new user.
"""
import argparse
import logging
import sys

from gatekeeper.core.config import get_settings
from gatekeeper.core.database import SessionLocal
from gatekeeper.core.errors import GatekeeperError
from gatekeeper.core.passwords import PasswordHasher
from gatekeeper.core.tokens import TokenService
from gatekeeper.repositories import Repository
from gatekeeper.schemas.user import UserCreate
from gatekeeper.services.bootstrap import ensure_admin_role
from gatekeeper.services.identity import IdentityService


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Create a Gatekeeper user (no registration UI).")
    parser.add_argument("username", help="Username (3-32 chars)")
    parser.add_argument("email", help="Email address")
    parser.add_argument("password", help="Password (6-128 chars)")
    parser.add_argument("--admin", action="store_true", help="Grant the admin role")
    args = parser.parse_args(argv)

    settings = get_settings()
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )

    try:
        data = UserCreate(username=args.username.strip(), email=args.email.strip(), password=args.password)
    except ValueError as exc:
        print(f"Invalid input: {exc}", file=sys.stderr)
        return 1

    db = SessionLocal()
    try:
        repo = Repository(db)
        service = IdentityService(
            repo,
            PasswordHasher.from_settings(settings),
            TokenService.from_settings(settings),
            settings=settings,
        )
        if args.admin:
            data.role_ids = [ensure_admin_role(repo).id]
        user = service.create_user(data)
    except GatekeeperError as exc:
        print(f"Could not create user '{data.username}': {exc.message}", file=sys.stderr)
        return 1
    finally:
        db.close()

    roles = ", ".join(role.code for role in user.roles) or "none"
    print(f"Created user '{user.username}' (id={user.id}) with roles: {roles}.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
