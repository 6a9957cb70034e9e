"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). Dataclasses own domain
shape; stores and the service do the work.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

from dataclasses import dataclass

ROLE_STANDARD = "standard"
ROLE_ADMIN = "admin"
ROLES = (ROLE_STANDARD, ROLE_ADMIN)


@dataclass
class User:
    """A registered identity.

    username is unique across all users and never changes after sign-up.
    hashed_password is a bcrypt hash; the plaintext is never stored.
    """

    username: str
    hashed_password: str
    role: str = ROLE_STANDARD  # "standard" or "admin"
    id: int | None = None
    created_at: str | None = None


@dataclass
class Session:
    """Server-side session state for one signed-in browser.

    id is the raw opaque value handed to the client in the cookie. It is only
    populated on the object returned by SessionStore.create(); sessions read
    back from the store carry the id the caller resolved them with.

    user_id is a weak reference -- the user may have been deleted since.
    created_at / expires_at are POSIX timestamps. Expiry is fixed at creation.
    """

    id: str
    user_id: int
    username: str
    created_at: float
    expires_at: float
