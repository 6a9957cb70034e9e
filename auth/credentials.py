"""
auth/credentials.py -- Password hashing, session id generation, and cookies.

Security design decisions:
  Passwords: bcrypt directly (no passlib wrapper). Bcrypt's cost factor makes
       brute-force of low-entropy secrets expensive. The _DUMMY_HASH constant
       enables timing equalization in authenticate_user() so response time
       does not reveal whether a username exists.

  Session ids: secrets.token_urlsafe(32) gives 256 bits of entropy. The store
       keeps HMAC-SHA256(SECRET_KEY, id), never the raw id, so a copy of the
       sessions table cannot be replayed as cookies. The digest is
       deterministic, so lookup stays a primary-key hit.

  Cookie: httpOnly, samesite=lax, max_age equal to the session TTL. Secure is
       decided per request when SECURE_COOKIES=auto.

Layer rule: no imports from api/. Import from core/ is allowed.
"""

from __future__ import annotations

import hashlib
import hmac
import logging
import secrets
from typing import TYPE_CHECKING

import bcrypt

from core.config import get_settings

if TYPE_CHECKING:
    from fastapi import Request, Response

    from auth.models import User
    from auth.store import UserStore

logger = logging.getLogger("sessiongate.auth")

# ---------------------------------------------------------------------------
# Password hashing
# ---------------------------------------------------------------------------


def hash_password(plain: str) -> str:
    """Return a bcrypt hash of the given plaintext password.

    bcrypt only looks at the first 72 bytes. Sign-up caps passwords at 72
    bytes for that reason.
    """
    return bcrypt.hashpw(plain.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Return True if the plaintext password matches the bcrypt hash."""
    plain_bytes = plain.encode("utf-8")
    if len(plain_bytes) > 72:
        # No stored hash was made from more than 72 bytes; bcrypt would
        # otherwise compare only the truncated prefix.
        return False
    try:
        return bcrypt.checkpw(plain_bytes, hashed.encode("utf-8"))
    except ValueError:
        # Malformed stored hash.
        return False


# Computed once at module load so the first login attempt is not measurably
# slower than subsequent ones.
_DUMMY_HASH: str = hash_password("sessiongate_timing_dummy")


def authenticate_user(store: UserStore, username: str, password: str) -> User | None:
    """Authenticate a username/password pair with timing equalization.

    Always runs bcrypt whether or not the user exists:
    - Unknown username: bcrypt runs against _DUMMY_HASH (same cost as real check)
    - Wrong password: bcrypt runs against the real hash

    Returns the User on success, None on any credential failure. Store errors
    propagate to the caller.
    """
    user = store.get_by_username(username)
    if user is None:
        verify_password(password, _DUMMY_HASH)
        return None
    if not verify_password(password, user.hashed_password):
        return None
    return user


# ---------------------------------------------------------------------------
# Session ids
# ---------------------------------------------------------------------------


def generate_session_id() -> str:
    return secrets.token_urlsafe(32)


def hash_session_id(raw_id: str) -> str:
    """Return HMAC-SHA256(SECRET_KEY, raw_id) as a hex string."""
    return hmac.new(
        get_settings().secret_key.encode(),
        raw_id.encode(),
        hashlib.sha256,
    ).hexdigest()


# ---------------------------------------------------------------------------
# Cookie helpers
# ---------------------------------------------------------------------------


def _cookie_is_secure(request: Request) -> bool:
    mode = get_settings().secure_cookies
    if mode == "auto":
        return request.url.scheme == "https"
    return mode == "true"


def set_session_cookie(request: Request, response: Response, session_id: str) -> None:
    """Write the session id as an httpOnly cookie on the response.

    The cookie carries nothing but the opaque id. max_age matches the
    session TTL so browser and store expire together.
    """
    settings = get_settings()
    response.set_cookie(
        settings.session_cookie_name,
        value=session_id,
        httponly=True,
        samesite="lax",
        secure=_cookie_is_secure(request),
        max_age=settings.session_ttl_seconds,
    )


def clear_session_cookie(response: Response) -> None:
    response.delete_cookie(get_settings().session_cookie_name, httponly=True, samesite="lax")
