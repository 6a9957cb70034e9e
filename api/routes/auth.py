"""
api/routes/auth.py -- Session authentication REST endpoints.

Routes:
  POST   /sign-up           -- register a standard user; 201
  POST   /sign-in           -- verify credentials; opens a session and sets the cookie
  POST   /logout            -- destroys the current session; clears the cookie
  DELETE /user/{user_id}    -- delete a user (session + admin role)
  GET    /is-authenticated  -- 200 when the cookie names a live session

Failures are raised as auth.errors.AuthError and rendered by the exception
handler in api/main.py as {"message": ...}.

Security:
  Sign-in returns the same 401 body for unknown username and wrong password.
  Cache-Control: no-store on sign-in and logout responses.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from api.models import Credentials, ErrorResponse, MessageResponse, SignInCredentials
from auth.credentials import clear_session_cookie, set_session_cookie
from auth.dependencies import get_auth_service, require_session, resolve_session
from auth.models import Session
from auth.service import AuthService

# Auth policy:
# - POST   /sign-up:           public
# - POST   /sign-in:           public
# - POST   /logout:            session checked by the service (400 when absent, not 401)
# - DELETE /user/{user_id}:    require_session, then admin role check in the service
# - GET    /is-authenticated:  require_session
router = APIRouter()

_ERRORS = {
    400: {"model": ErrorResponse},
    401: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
}


@router.post("/sign-up", response_model=MessageResponse, status_code=201, responses=_ERRORS)
def sign_up(body: Credentials, service: AuthService = Depends(get_auth_service)) -> MessageResponse:
    """Create a standard user. A separate sign-in is required afterwards."""
    service.sign_up(body.username, body.password)
    return MessageResponse(message="User registered successfully.")


@router.post("/sign-in", response_model=MessageResponse, responses=_ERRORS)
def sign_in(
    request: Request,
    body: SignInCredentials,
    service: AuthService = Depends(get_auth_service),
) -> JSONResponse:
    previous = resolve_session(request)
    session = service.sign_in(body.username, body.password, previous=previous)
    resp = JSONResponse(status_code=200, content=MessageResponse(message="Logged in successfully").model_dump())
    set_session_cookie(request, resp, session.id)
    resp.headers["Cache-Control"] = "no-store"
    return resp


@router.post("/logout", response_model=MessageResponse, responses=_ERRORS)
def logout(request: Request, service: AuthService = Depends(get_auth_service)) -> JSONResponse:
    service.logout(resolve_session(request))
    resp = JSONResponse(status_code=200, content=MessageResponse(message="Logout successful").model_dump())
    clear_session_cookie(resp)
    resp.headers["Cache-Control"] = "no-store"
    return resp


@router.delete("/user/{user_id}", response_model=MessageResponse, responses=_ERRORS)
def delete_user(
    user_id: int,
    session: Session = Depends(require_session),
    service: AuthService = Depends(get_auth_service),
) -> MessageResponse:
    """Delete a user. The caller's role is re-checked against the store on every call."""
    service.delete_user(session, user_id)
    return MessageResponse(message="User deleted successfully")


@router.get("/is-authenticated", response_model=MessageResponse, responses=_ERRORS)
def is_authenticated(session: Session = Depends(require_session)) -> MessageResponse:
    """Let front-ends check login state without side effects."""
    return MessageResponse(message="Authenticated")
