"""
auth/service.py -- Sign-up, sign-in, logout and admin-only user deletion.

AuthService is constructed with explicit store handles; it holds no other
state. Sessions are passed in already resolved (Session | None) so nothing
here depends on how the transport carries the cookie.

Outcomes that are not successes are raised as auth.errors.AuthError
subclasses. Unexpected SQLAlchemy errors are logged and re-raised as
StoreUnavailable; no operation retries.

Layer rule: no imports from api/.
"""

from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from auth.credentials import authenticate_user, hash_password
from auth.errors import (
    AuthenticationFailed,
    LogoutFailed,
    NoActiveSession,
    NotAuthorized,
    RegistrationFailed,
    StoreUnavailable,
    UsernameTaken,
    UserNotFound,
)
from auth.models import ROLE_ADMIN, ROLE_STANDARD, ROLES, Session, User
from auth.sessions import SessionStore
from auth.store import UserStore

logger = logging.getLogger("sessiongate.auth")


class AuthService:
    def __init__(self, user_store: UserStore, session_store: SessionStore) -> None:
        self.users = user_store
        self.sessions = session_store

    def sign_up(self, username: str, password: str, role: str = ROLE_STANDARD) -> User:
        """Register a new user. Does not sign them in.

        The look-up catches the common duplicate case with a friendly error;
        the UNIQUE constraint catches the concurrent one.
        """
        if role not in ROLES:
            raise ValueError(f"Unknown role {role!r}; expected one of {ROLES}")
        try:
            if self.users.get_by_username(username) is not None:
                raise UsernameTaken()
            user = User(username=username, hashed_password=hash_password(password), role=role)
            user.id = self.users.create_user(user)
        except IntegrityError as exc:
            raise UsernameTaken() from exc
        except SQLAlchemyError as exc:
            logger.exception("Sign-up failed for %r", username)
            raise RegistrationFailed(detail=str(exc)) from exc
        logger.info("Registered user %r (id=%s, role=%s)", username, user.id, role)
        return user

    def sign_in(self, username: str, password: str, previous: Session | None = None) -> Session:
        """Verify credentials and open a fresh session.

        A session already held by the caller is replaced, so an old id cannot
        keep working alongside the new one.
        """
        try:
            user = authenticate_user(self.users, username, password)
            if user is None:
                logger.warning("Failed sign-in for %r", username)
                raise AuthenticationFailed()
            if previous is not None:
                self.sessions.destroy(previous.id)
            session = self.sessions.create(user_id=user.id, username=user.username)
        except SQLAlchemyError as exc:
            logger.exception("Sign-in failed for %r", username)
            raise StoreUnavailable(detail=str(exc)) from exc
        logger.info("User %r signed in", username)
        return session

    def logout(self, session: Session | None) -> None:
        if session is None:
            raise NoActiveSession()
        try:
            self.sessions.destroy(session.id)
        except SQLAlchemyError as exc:
            logger.exception("Could not destroy session for user %r", session.username)
            raise LogoutFailed(detail=str(exc)) from exc
        logger.info("User %r logged out", session.username)

    def delete_user(self, session: Session, target_id: int) -> None:
        """Delete target_id on behalf of the session's user, who must be an admin.

        The actor's role is re-read from the store on every call: a session
        proves who the caller is, not what they may do. An actor deleted since
        the session was opened counts as unauthorized.

        The target's sessions are destroyed along with the record.
        """
        try:
            actor = self.users.get_by_id(session.user_id)
            if actor is None or actor.role != ROLE_ADMIN:
                logger.warning("User %r attempted to delete user %s without admin role", session.username, target_id)
                raise NotAuthorized()
            target = self.users.get_by_id(target_id)
            if target is None:
                raise UserNotFound()
            self.users.delete_user(target_id)
            revoked = self.sessions.destroy_for_user(target_id)
        except SQLAlchemyError as exc:
            logger.exception("Deleting user %s failed", target_id)
            raise StoreUnavailable(detail=str(exc)) from exc
        logger.info(
            "Admin %r deleted user %r (id=%s), %d session(s) revoked",
            actor.username,
            target.username,
            target_id,
            revoked,
        )
