"""
tests/test_api_routes.py -- Integration tests for the session auth routes.

These tests exercise the full stack: FastAPI routing -> session dependency ->
AuthService -> UserStore/SessionStore -> exception handler rendering. Cookies
travel through the TestClient's cookie jar exactly as a browser would send them.

Coverage:
  - Sign-up: 201, duplicate 400, missing fields 400
  - Sign-in: 200 + httpOnly cookie, identical 401 for unknown user and wrong password
  - /is-authenticated: 200 with live session, 401 without, after logout, after TTL expiry
  - Logout: 200 + cookie cleared, 400 without session
  - Delete: 401 unauthenticated / standard role, 404 missing target, 200 + sessions revoked
"""

from __future__ import annotations

from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

from core.config import get_settings

NOT_LOGGED_IN = {"message": "You must be logged in to access this"}


def register(client: TestClient, username: str, password: str):
    return client.post("/sign-up", json={"username": username, "password": password})


def login(client: TestClient, username: str, password: str):
    return client.post("/sign-in", json={"username": username, "password": password})


def _db_down(*args, **kwargs):
    raise OperationalError("SELECT", {}, Exception("database is locked"))


class TestSignUp:
    def test_sign_up_created(self, client: TestClient) -> None:
        resp = register(client, "alice", "pw1")
        assert resp.status_code == 201
        assert resp.json() == {"message": "User registered successfully."}

    def test_duplicate_username_rejected(self, client: TestClient) -> None:
        assert register(client, "bob", "pw1").status_code == 201
        resp = register(client, "bob", "other")
        assert resp.status_code == 400
        assert resp.json() == {"message": "Username already taken."}

    def test_sign_up_does_not_log_in(self, client: TestClient) -> None:
        register(client, "carol", "pw1")
        assert "sid" not in client.cookies
        assert client.get("/is-authenticated").status_code == 401

    def test_missing_password_is_400(self, client: TestClient) -> None:
        resp = client.post("/sign-up", json={"username": "dave"})
        assert resp.status_code == 400
        assert resp.json()["message"] == "Request validation failed."

    def test_new_user_has_standard_role(self, client: TestClient, stores) -> None:
        register(client, "erin", "pw1")
        assert stores.users.get_by_username("erin").role == "standard"


class TestSignIn:
    def test_sign_in_sets_http_only_cookie(self, client: TestClient) -> None:
        register(client, "alice", "pw1")
        resp = login(client, "alice", "pw1")
        assert resp.status_code == 200
        assert resp.json() == {"message": "Logged in successfully"}
        assert resp.headers["cache-control"] == "no-store"
        set_cookie = resp.headers["set-cookie"].lower()
        assert set_cookie.startswith("sid=")
        assert "httponly" in set_cookie
        assert f"max-age={get_settings().session_ttl_seconds}" in set_cookie
        # Plain http test transport: "auto" must not mark the cookie secure.
        assert "secure" not in set_cookie

    def test_failures_are_indistinguishable(self, client: TestClient) -> None:
        """Unknown username and wrong password must produce the same status and body."""
        register(client, "alice", "pw1")
        unknown = login(client, "nobody", "pw1")
        wrong = login(client, "alice", "wrong")
        assert unknown.status_code == wrong.status_code == 401
        assert unknown.content == wrong.content
        assert wrong.json() == {"message": "Authentication failed"}
        assert "set-cookie" not in wrong.headers

    def test_cookie_holds_only_an_opaque_id(self, client: TestClient) -> None:
        register(client, "alice", "pw1")
        login(client, "alice", "pw1")
        sid = client.cookies["sid"]
        assert "alice" not in sid
        assert len(sid) >= 32

    def test_second_sign_in_replaces_session(self, client: TestClient) -> None:
        register(client, "alice", "pw1")
        login(client, "alice", "pw1")
        first = client.cookies["sid"]
        login(client, "alice", "pw1")
        second = client.cookies["sid"]
        assert first != second
        client.cookies.clear()
        client.cookies.set("sid", first)
        assert client.get("/is-authenticated").status_code == 401

    def test_over_long_password_is_401(self, client: TestClient) -> None:
        """Sign-in does not length-check: a wrong password is wrong at any length."""
        password = "p" * 72
        register(client, "alice", password)
        resp = login(client, "alice", password + "extra")
        assert resp.status_code == 401
        assert resp.json() == {"message": "Authentication failed"}
        assert login(client, "nobody", "x" * 200).status_code == 401


class TestSessionLifecycle:
    def test_is_authenticated_without_cookie(self, client: TestClient) -> None:
        resp = client.get("/is-authenticated")
        assert resp.status_code == 401
        assert resp.json() == NOT_LOGGED_IN

    def test_is_authenticated_with_unknown_cookie(self, client: TestClient) -> None:
        client.cookies.set("sid", "forged-session-id")
        assert client.get("/is-authenticated").status_code == 401

    def test_logout_invalidates_session(self, client: TestClient) -> None:
        register(client, "alice", "pw1")
        login(client, "alice", "pw1")
        sid = client.cookies["sid"]
        assert client.get("/is-authenticated").status_code == 200

        resp = client.post("/logout")
        assert resp.status_code == 200
        assert resp.json() == {"message": "Logout successful"}
        assert "sid" not in client.cookies

        # Replaying the old cookie must fail: the store no longer knows the id.
        client.cookies.set("sid", sid)
        assert client.get("/is-authenticated").status_code == 401

    def test_logout_without_session(self, client: TestClient) -> None:
        resp = client.post("/logout")
        assert resp.status_code == 400
        assert resp.json() == {"message": "You are not logged in."}

    @pytest.mark.parametrize(
        "method, path",
        [("post", "/logout"), ("get", "/is-authenticated"), ("delete", "/user/1")],
    )
    def test_session_lookup_failure_is_500(self, client: TestClient, stores, method, path) -> None:
        register(client, "alice", "pw1")
        login(client, "alice", "pw1")
        with patch.object(stores.sessions, "get", side_effect=_db_down):
            resp = getattr(client, method)(path)
        assert resp.status_code == 500
        body = resp.json()
        assert body["message"] == "Internal server error."
        assert "database is locked" in body["error"]

    def test_session_expires_after_ttl(self, client: TestClient, stores) -> None:
        ttl = stores.sessions.ttl
        register(client, "alice", "pw1")
        login(client, "alice", "pw1")
        stores.clock.advance(ttl - 1)
        assert client.get("/is-authenticated").status_code == 200
        stores.clock.advance(1)
        assert client.get("/is-authenticated").status_code == 401

    def test_expiry_is_not_sliding(self, client: TestClient, stores) -> None:
        ttl = stores.sessions.ttl
        register(client, "alice", "pw1")
        login(client, "alice", "pw1")
        for _ in range(4):
            stores.clock.advance(ttl / 4 - 1)
            assert client.get("/is-authenticated").status_code == 200
        stores.clock.advance(4)
        assert client.get("/is-authenticated").status_code == 401


class TestDeleteUser:
    def test_requires_session(self, client: TestClient, admin) -> None:
        resp = client.delete(f"/user/{admin.id}")
        assert resp.status_code == 401
        assert resp.json() == NOT_LOGGED_IN

    def test_standard_user_is_unauthorized(self, client: TestClient, stores) -> None:
        register(client, "alice", "pw1")
        register(client, "bob", "pw2")
        bob = stores.users.get_by_username("bob")
        login(client, "alice", "pw1")
        for target in (bob.id, 99999):
            resp = client.delete(f"/user/{target}")
            assert resp.status_code == 401
            assert resp.json() == {"message": "Unauthorized."}
        assert stores.users.get_by_id(bob.id) is not None

    def test_admin_missing_target(self, client: TestClient, admin) -> None:
        login(client, "root", "rootpass")
        resp = client.delete("/user/99999")
        assert resp.status_code == 404
        assert resp.json() == {"message": "User not found."}

    def test_admin_deletes_user(self, client: TestClient, stores, admin) -> None:
        register(client, "bob", "pw2")
        bob = stores.users.get_by_username("bob")
        login(client, "root", "rootpass")
        resp = client.delete(f"/user/{bob.id}")
        assert resp.status_code == 200
        assert resp.json() == {"message": "User deleted successfully"}
        assert stores.users.get_by_id(bob.id) is None
        assert stores.users.get_by_username("bob") is None

    def test_deleted_users_sessions_are_revoked(self, client: TestClient, stores, admin) -> None:
        from api.main import app

        bob_client = client
        with TestClient(app) as admin_client:
            register(bob_client, "bob", "pw2")
            login(bob_client, "bob", "pw2")
            assert bob_client.get("/is-authenticated").status_code == 200

            bob = stores.users.get_by_username("bob")
            login(admin_client, "root", "rootpass")
            assert admin_client.delete(f"/user/{bob.id}").status_code == 200

            assert bob_client.get("/is-authenticated").status_code == 401

    def test_non_integer_id_is_400(self, client: TestClient, admin) -> None:
        login(client, "root", "rootpass")
        assert client.delete("/user/not-a-number").status_code == 400

    def test_id_beyond_integer_range_is_404(self, client: TestClient, admin) -> None:
        login(client, "root", "rootpass")
        for target in ("99999999999999999999", str(2**63), "-1", "0"):
            resp = client.delete(f"/user/{target}")
            assert resp.status_code == 404
            assert resp.json() == {"message": "User not found."}

    def test_id_beyond_integer_range_still_checks_role(self, client: TestClient) -> None:
        register(client, "alice", "pw1")
        login(client, "alice", "pw1")
        resp = client.delete("/user/99999999999999999999")
        assert resp.status_code == 401
        assert resp.json() == {"message": "Unauthorized."}

    def test_role_is_rechecked_on_every_call(self, client: TestClient, stores, admin) -> None:
        """An admin deleted mid-session loses delete rights immediately."""
        from auth.models import ROLE_ADMIN

        second = stores.service.sign_up("second", "pw", role=ROLE_ADMIN)
        register(client, "bob", "pw2")
        bob = stores.users.get_by_username("bob")
        login(client, "second", "pw")
        stores.users.delete_user(second.id)
        resp = client.delete(f"/user/{bob.id}")
        assert resp.status_code == 401
        assert stores.users.get_by_id(bob.id) is not None


def test_alice_walkthrough(client: TestClient) -> None:
    assert register(client, "alice", "pw1").status_code == 201

    resp = register(client, "alice", "pw2")
    assert (resp.status_code, resp.json()["message"]) == (400, "Username already taken.")

    resp = login(client, "alice", "wrong")
    assert (resp.status_code, resp.json()["message"]) == (401, "Authentication failed")

    resp = login(client, "alice", "pw1")
    assert resp.status_code == 200
    assert "sid" in client.cookies

    assert client.get("/is-authenticated").status_code == 200
    assert client.post("/logout").status_code == 200
    assert client.get("/is-authenticated").status_code == 401
