#!/usr/bin/env python3
"""
Portfolio backend -- operator command line.

Usage:
  python main.py serve
  python main.py serve --host 127.0.0.1 --port 8000 --reload
  python main.py create-admin --email admin@example.com --name "Site Admin"
  python main.py create-admin --email admin@example.com --name "Site Admin" --password 'S3cretPass'

Environment variables:
  DATABASE_URL  SQLAlchemy URL of the database (default: sqlite:///portfolio.db)
  SECRET_KEY    Token signing key, at least 32 characters. Required unless DEBUG=true.
  See core/config.py for the full list.
"""

import argparse
import getpass
import sys
from typing import Optional

from auth.models import Role, User
from auth.store import UserStore
from auth.tokens import hash_password
from core.config import get_settings
from core.database import Database
from core.errors import Conflict, ValidationFailed
from core.validation import RegistrationIn, parse_body


def create_admin(db: Database, email: str, name: str, password: str) -> int:
    """Create an admin account. Returns the process exit status.

    Validated with the same rules as self-registration, so an admin password
    is held to the same strength policy as everyone else's.
    """
    try:
        data = parse_body(RegistrationIn, {"name": name, "email": email, "password": password})
        user_id = UserStore(db).create_user(
            User(
                name=data["name"],
                email=data["email"],
                hashed_password=hash_password(data["password"]),
                role=Role.admin,
            )
        )
    except ValidationFailed as exc:
        print("  [!] Admin not created:")
        for violation in exc.violations:
            print(f"      {violation.field}: {violation.message}")
        return 1
    except Conflict as exc:
        print(f"  [!] Admin not created: {exc.message}")
        return 1
    print(f"  Admin {data['email']} created (id={user_id}).")
    return 0


def _prompt_password() -> str:
    password = getpass.getpass("Password: ")
    if password != getpass.getpass("Confirm password: "):
        print("  [!] Passwords do not match.")
        sys.exit(1)
    return password


def serve(host: str, port: int, reload: bool = False) -> None:
    import uvicorn

    uvicorn.run("asgi:app", host=host, port=port, reload=reload)


def main(argv: Optional[list[str]] = None) -> int:
    settings = get_settings()
    parser = argparse.ArgumentParser(
        prog="portfolio",
        description="Portfolio backend: REST API server and admin tooling.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py serve
  python main.py serve --port 8000 --reload
  python main.py create-admin --email admin@example.com --name "Site Admin"
        """,
    )
    commands = parser.add_subparsers(dest="command", metavar="COMMAND")

    serve_cmd = commands.add_parser("serve", help="Run the API server with uvicorn")
    serve_cmd.add_argument("--host", default=settings.host, help=f"Bind address (default: {settings.host})")
    serve_cmd.add_argument("--port", type=int, default=settings.port, help=f"Port (default: {settings.port})")
    serve_cmd.add_argument("--reload", action="store_true", help="Restart on code changes (development only)")

    admin_cmd = commands.add_parser("create-admin", help="Create an admin account")
    admin_cmd.add_argument("--email", required=True, help="Email the admin signs in with")
    admin_cmd.add_argument("--name", required=True, help="Display name")
    admin_cmd.add_argument(
        "--password",
        default=None,
        help="Password (prompted for when omitted; passing it here leaves it in shell history)",
    )

    args = parser.parse_args(argv)

    if args.command == "serve":
        serve(args.host, args.port, reload=args.reload)
        return 0

    if args.command == "create-admin":
        password = args.password if args.password is not None else _prompt_password()
        db = Database(settings.database_url)
        try:
            db.create_all()
            return create_admin(db, args.email, args.name, password)
        finally:
            db.close()

    parser.print_help()
    return 0


if __name__ == "__main__":
    sys.exit(main())
