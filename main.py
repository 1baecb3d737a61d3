#!/usr/bin/env python3
"""
SSO Auth -- operator CLI.

Apps and admin flags are not managed over HTTP. This tool writes them
directly to the configured database (DATABASE_URL).

Usage:
  python main.py serve --host 0.0.0.0 --port 8000
  python main.py add-app --id 42 --name billing
  python main.py add-app --id 43 --name reports --secret "$(openssl rand -hex 32)"
  python main.py list-apps
  python main.py set-admin --user-id 3f2b...e1
  python main.py set-admin --user-id 3f2b...e1 --revoke

Environment variables:
  DATABASE_URL   SQLAlchemy URL for the user/app store (default: sqlite file beside the package).
"""

import argparse
import secrets
import sys
from typing import Optional

from sqlalchemy.exc import IntegrityError

from auth.models import NIL_USER_ID, App, parse_user_id
from auth.store import SqlStore
from core.config import get_settings

# Short secrets weaken HS256 signing; same floor for generated and supplied ones.
_MIN_SECRET_LENGTH = 32


def _add_app(store: SqlStore, app_id: int, name: str, secret: Optional[str]) -> int:
    if app_id == 0:
        print("  [!] App ID 0 is reserved and cannot be registered.")
        return 2
    if secret is None:
        secret = secrets.token_hex(32)
        generated = True
    else:
        generated = False
    if len(secret) < _MIN_SECRET_LENGTH:
        print(f"  [!] Secret must be at least {_MIN_SECRET_LENGTH} characters.")
        return 2
    try:
        store.save_app(App(id=app_id, name=name, secret=secret))
    except IntegrityError:
        print(f"  [!] App {app_id} already exists.")
        return 1
    print(f"  App {app_id} ({name}) registered.")
    if generated:
        # Shown once; the relying app needs it to verify tokens.
        print(f"  Signing secret: {secret}")
    return 0


def _list_apps(store: SqlStore) -> int:
    apps = store.list_apps()
    if not apps:
        print("  No apps registered.")
        return 0
    for app in apps:
        print(f"  {app.id:>6}  {app.name}  (created {app.created_at})")
    return 0


def _set_admin(store: SqlStore, raw_user_id: str, revoke: bool) -> int:
    try:
        user_id = parse_user_id(raw_user_id)
    except ValueError:
        print(f"  [!] '{raw_user_id}' is not a valid user ID. Expected 32 hex characters.")
        return 2
    if user_id == NIL_USER_ID:
        print("  [!] The nil user ID cannot be modified.")
        return 2
    if not store.set_admin(user_id, not revoke):
        print(f"  [!] No user with ID {user_id.hex}.")
        return 1
    print(f"  Admin flag {'revoked from' if revoke else 'granted to'} {user_id.hex}.")
    return 0


def _serve(host: str, port: int) -> int:
    import uvicorn

    uvicorn.run("api.main:app", host=host, port=port)
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        prog="sso-auth",
        description="Operator tooling for the SSO auth service.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    sub = parser.add_subparsers(dest="command", metavar="COMMAND")

    serve = sub.add_parser("serve", help="Run the HTTP API with uvicorn")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8000)

    add_app = sub.add_parser("add-app", help="Register an app and its signing secret")
    add_app.add_argument("--id", dest="app_id", type=int, required=True, help="Non-zero integer app ID")
    add_app.add_argument("--name", required=True, help="Display name")
    add_app.add_argument(
        "--secret",
        default=None,
        help=f"Signing secret (min {_MIN_SECRET_LENGTH} chars). Generated and printed once if omitted.",
    )

    sub.add_parser("list-apps", help="List registered apps (secrets are not shown)")

    set_admin = sub.add_parser("set-admin", help="Grant or revoke a user's admin flag")
    set_admin.add_argument("--user-id", required=True, help="32-character hex user ID")
    set_admin.add_argument("--revoke", action="store_true", help="Clear the flag instead of setting it")

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    if args.command == "serve":
        return _serve(args.host, args.port)

    store = SqlStore(get_settings().database_url)
    try:
        if args.command == "add-app":
            return _add_app(store, args.app_id, args.name, args.secret)
        if args.command == "list-apps":
            return _list_apps(store)
        return _set_admin(store, args.user_id, args.revoke)
    finally:
        store.close()


if __name__ == "__main__":
    sys.exit(main())
