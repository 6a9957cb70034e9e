"""
auth/errors.py -- Expected failure outcomes of the authentication flows.

Each subclass carries the HTTP status and the human-readable message the API
returns for it, so the service can stay transport-free while the single
exception handler in api/main.py renders them uniformly.

4xx classes are normal, locally handled outcomes. StoreUnavailable and
LogoutFailed mean a collaborator failed; they are logged and never retried.
"""

from __future__ import annotations


class AuthError(Exception):
    status_code: int = 400
    message: str = "Request failed."

    def __init__(self, message: str | None = None, detail: str | None = None) -> None:
        if message is not None:
            self.message = message
        self.detail = detail
        super().__init__(self.message)


class UsernameTaken(AuthError):
    status_code = 400
    message = "Username already taken."


class RegistrationFailed(AuthError):
    status_code = 400
    message = "Could not register user."


class AuthenticationFailed(AuthError):
    """Unknown username and wrong password both raise this, with no detail."""

    status_code = 401
    message = "Authentication failed"


class NotLoggedIn(AuthError):
    status_code = 401
    message = "You must be logged in to access this"


class NoActiveSession(AuthError):
    """Raised by logout, which reports a missing session as a bad request."""

    status_code = 400
    message = "You are not logged in."


class NotAuthorized(AuthError):
    status_code = 401
    message = "Unauthorized."


class UserNotFound(AuthError):
    status_code = 404
    message = "User not found."


class LogoutFailed(AuthError):
    status_code = 500
    message = "Could not log out, please try again."


class StoreUnavailable(AuthError):
    status_code = 500
    message = "Internal server error."
