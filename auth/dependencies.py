"""
auth/dependencies.py -- FastAPI Depends() helpers for session authentication.

The session cookie carries only an opaque id. resolve_session() turns it into
a Session (or None) via the SessionStore; is_authenticated() is the pure
gate over that resolved value.

resolve_session() is the soft variant (returns None when there is no live
session). require_session() wraps it and raises NotLoggedIn (401) on deny.

Neither helper touches the UserStore. Routes that need the user record (for
a role check) fetch it themselves.

auth/dependencies.py may import from fastapi (for Request) because this
module is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

import logging

from fastapi import Request
from sqlalchemy.exc import SQLAlchemyError

from auth.errors import NotLoggedIn, StoreUnavailable
from auth.models import Session
from auth.service import AuthService
from auth.sessions import SessionStore
from core.config import get_settings

logger = logging.getLogger("sessiongate.auth")


def is_authenticated(session: Session | None) -> bool:
    """Return True if the resolved session carries a user reference."""
    return session is not None and session.user_id is not None and bool(session.username)


def get_auth_service(request: Request) -> AuthService:
    return request.app.state.auth_service


def resolve_session(request: Request) -> Session | None:
    """Look up the session named by the request's cookie.

    Returns None when the cookie is missing, unknown, or expired. Raises
    StoreUnavailable (HTTP 500) when the session store cannot be read.
    """
    raw_id = request.cookies.get(get_settings().session_cookie_name)
    if not raw_id:
        return None
    session_store: SessionStore = request.app.state.session_store
    try:
        return session_store.get(raw_id)
    except SQLAlchemyError as exc:
        logger.exception("Session lookup failed on %s %s", request.method, request.url.path)
        raise StoreUnavailable(detail=str(exc)) from exc


def require_session(request: Request) -> Session:
    """Require a live session. Raises NotLoggedIn (HTTP 401) otherwise.

    Use as a FastAPI dependency:
        @router.get("/protected")
        def route(session: Session = Depends(require_session)): ...
    """
    session = resolve_session(request)
    if not is_authenticated(session):
        raise NotLoggedIn()
    return session
