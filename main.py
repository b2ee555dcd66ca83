#!/usr/bin/env python3
"""
Blog API -- command-line entry point.

Usage:
  python main.py serve
  python main.py serve --host 0.0.0.0 --port 8080
  python main.py serve --reload
  python main.py create-user alice alice@example.com

Environment variables:
  SECRET_KEY    Token signing key, at least 32 characters. Required unless DEBUG=true.
  DEBUG         Set to true for local development (auto-generates SECRET_KEY).
  DATABASE_URL  SQLAlchemy URL. Defaults to a SQLite file next to this script.
"""

import argparse
import getpass
import sys
from typing import Optional

from auth.service import UserService
from auth.store import UserStore
from auth.tokens import TokenService
from core.config import get_settings
from core.errors import BlogError


def _serve(args: argparse.Namespace) -> int:
    import uvicorn

    uvicorn.run("asgi:app", host=args.host, port=args.port, reload=args.reload)
    return 0


def _create_user(args: argparse.Namespace) -> int:
    """Register an account from the terminal. The password is never echoed."""
    password = getpass.getpass("Password: ")
    if password != getpass.getpass("Repeat password: "):
        print("  [!] Passwords do not match.")
        return 1

    settings = get_settings()
    store = UserStore(settings.database_url)
    try:
        tokens = TokenService(settings.secret_key, settings.token_expire_seconds, settings.token_issuer)
        users = UserService(store, tokens, bcrypt_cost=settings.bcrypt_cost)
        user = users.register(args.username, args.email, password)
    except BlogError as exc:
        print(f"  [!] {exc.message}")
        return 1
    finally:
        store.close()

    print(f"  Created user '{user.username}' (id={user.id}).")
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        prog="blog-api",
        description="Blog CRUD API with bearer-token authentication.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py serve --reload
  python main.py create-user alice alice@example.com
        """,
    )
    sub = parser.add_subparsers(dest="command", metavar="COMMAND")

    serve = sub.add_parser("serve", help="Run the HTTP API with uvicorn")
    serve.add_argument("--host", default="127.0.0.1", help="Bind address (default: 127.0.0.1)")
    serve.add_argument("--port", type=int, default=8000, help="Bind port (default: 8000)")
    serve.add_argument("--reload", action="store_true", help="Restart on code changes (development only)")
    serve.set_defaults(func=_serve)

    create = sub.add_parser("create-user", help="Register a user; prompts for the password")
    create.add_argument("username")
    create.add_argument("email")
    create.set_defaults(func=_create_user)

    args = parser.parse_args(argv)
    if args.command is None:
        parser.print_help()
        return 1
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
