#!/usr/bin/env python3
"""
SessionGate -- session-based authentication gateway.

Usage:
  python main.py serve
  python main.py serve --host 0.0.0.0 --port 8080 --reload
  python main.py create-admin alice
  python main.py purge-sessions

Sign-up over HTTP only ever creates standard users, so the first admin is
provisioned here with create-admin.

Configuration is read from the environment / .env (see core/config.py):
  SECRET_KEY, DATABASE_URL, SESSION_TTL_SECONDS, SECURE_COOKIES, PORT, ...
"""

import argparse
import getpass
import sys
from typing import Optional

from core.config import get_settings


def _create_admin(username: str) -> int:
    from auth.errors import AuthError
    from auth.models import ROLE_ADMIN
    from auth.service import AuthService
    from auth.sessions import SessionStore
    from auth.store import UserStore

    password = getpass.getpass(f"Password for {username}: ")
    if not password:
        print("  [!] Password must not be empty.")
        return 1
    if password != getpass.getpass("Repeat password: "):
        print("  [!] Passwords do not match.")
        return 1
    if len(password.encode("utf-8")) > 72:
        print("  [!] Password must be at most 72 bytes.")
        return 1

    settings = get_settings()
    users = UserStore(settings.database_url)
    sessions = SessionStore(settings.database_url, ttl=settings.session_ttl_seconds)
    try:
        user = AuthService(users, sessions).sign_up(username, password, role=ROLE_ADMIN)
    except AuthError as exc:
        print(f"  [!] {exc.message}")
        return 1
    finally:
        sessions.close()
        users.close()
    print(f"  Admin '{user.username}' created (id={user.id}).")
    return 0


def _purge_sessions() -> int:
    from auth.sessions import SessionStore

    settings = get_settings()
    sessions = SessionStore(settings.database_url, ttl=settings.session_ttl_seconds)
    try:
        removed = sessions.purge_expired()
    finally:
        sessions.close()
    print(f"  Removed {removed} expired session(s).")
    return 0


def _serve(host: Optional[str], port: Optional[int], reload: bool) -> int:
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "api.main:app",
        host=host or settings.host,
        port=port or settings.port,
        reload=reload,
    )
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        description="SessionGate -- session-based authentication gateway",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the HTTP API with uvicorn")
    serve.add_argument("--host", help="Bind address (default: HOST setting)")
    serve.add_argument("--port", type=int, help="Listen port (default: PORT setting)")
    serve.add_argument("--reload", action="store_true", help="Restart on code changes (development)")

    admin = sub.add_parser("create-admin", help="Create a user with the admin role")
    admin.add_argument("username", help="Username for the new admin")

    sub.add_parser("purge-sessions", help="Delete expired sessions from the store")

    args = parser.parse_args(argv)

    if args.command == "serve":
        return _serve(args.host, args.port, args.reload)
    if args.command == "create-admin":
        return _create_admin(args.username)
    return _purge_sessions()


if __name__ == "__main__":
    sys.exit(main())
