#!/usr/bin/env python3
"""
Exam Adda -- administration commands.

Usage:
  python main.py seed-superadmin --email admin@examadda.com --password 'S3cret!'
  python main.py seed-superadmin                     # reads SUPER_ADMIN_EMAIL / SUPER_ADMIN_PASSWORD
  python main.py serve --host 0.0.0.0 --port 8000
  python main.py serve --reload

Environment variables:
  ENVIRONMENT           production (default) or development/dev/local
  JWT_SECRET            Token signing secret, required outside development
  DATABASE_URL          SQLAlchemy URL, required outside development
  SUPER_ADMIN_EMAIL     Default for seed-superadmin --email
  SUPER_ADMIN_PASSWORD  Default for seed-superadmin --password
"""

import argparse
import logging
import sys
from typing import Optional

from auth.errors import ServiceError
from auth.service import AuthService
from auth.store import CredentialStore
from core.config import get_settings

logger = logging.getLogger("examadda.cli")


def seed_super_admin(email: str, password: str, database_url: Optional[str] = None) -> int:
    """Create or reset the platform super admin. Returns a process exit code.

    Idempotent: running it twice leaves exactly one account with the given
    email, holding the latest password and the SUPER_ADMIN role.
    """
    store = CredentialStore(database_url or get_settings().database_url)
    try:
        user = AuthService(store).seed_super_admin(email, password)
    except ServiceError as e:
        print(f"  [!] Could not seed super admin: {e.message}", file=sys.stderr)
        return 1
    finally:
        store.close()
    print(f"  Super admin ready: {user.email} ({user.id})")
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        prog="examadda",
        description="Administration commands for the Exam Adda API.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py seed-superadmin --email admin@examadda.com --password 'S3cret!'
  SUPER_ADMIN_EMAIL=admin@examadda.com SUPER_ADMIN_PASSWORD=... python main.py seed-superadmin
  ENVIRONMENT=development python main.py serve --reload
        """,
    )
    settings = get_settings()
    commands = parser.add_subparsers(dest="command", metavar="COMMAND")

    seed = commands.add_parser("seed-superadmin", help="Create or reset the super admin account")
    seed.add_argument(
        "--email",
        default=settings.super_admin_email or None,
        help="Super admin email (default: $SUPER_ADMIN_EMAIL)",
    )
    seed.add_argument(
        "--password",
        default=settings.super_admin_password or None,
        help="Super admin password (default: $SUPER_ADMIN_PASSWORD)",
    )

    serve = commands.add_parser("serve", help="Run the HTTP API with uvicorn")
    serve.add_argument("--host", default="127.0.0.1", help="Bind address (default: 127.0.0.1)")
    serve.add_argument("--port", type=int, default=8000, help="Bind port (default: 8000)")
    serve.add_argument("--reload", action="store_true", help="Restart on code changes (development only)")

    args = parser.parse_args(argv)

    if args.command == "seed-superadmin":
        if not args.email or not args.password:
            seed.error("--email and --password are required (or set SUPER_ADMIN_EMAIL / SUPER_ADMIN_PASSWORD)")
        if len(args.password) < 6:
            seed.error("--password must be at least 6 characters")
        logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)-5s %(name)s %(message)s")
        return seed_super_admin(args.email, args.password)

    if args.command == "serve":
        import uvicorn

        uvicorn.run("asgi:app", host=args.host, port=args.port, reload=args.reload)
        return 0

    parser.print_help()
    return 2


if __name__ == "__main__":
    sys.exit(main())
