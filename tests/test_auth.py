"""Tests for admin credential checks, sessions and the /auth endpoint."""

from unittest.mock import Mock

import pytest
from fastapi.testclient import TestClient

from portfolio_api.core.auth import SessionStore, verify_credentials
from portfolio_api.core.config import AdminSettings, Settings

ADMIN_USERNAME = "admin"
ADMIN_PASSWORD = "correct horse battery"

LOGIN = {"username": ADMIN_USERNAME, "password": ADMIN_PASSWORD}


class TestVerifyCredentials:
    """Credential comparison against the configured bcrypt hash."""

    @pytest.fixture
    def admin(self, settings: Settings) -> AdminSettings:
        return settings.admin

    def test_accepts_correct_credentials(self, admin: AdminSettings) -> None:
        assert verify_credentials(ADMIN_USERNAME, ADMIN_PASSWORD, admin) is True

    @pytest.mark.parametrize(
        ("username", "password"),
        [("admin", "wrong"), ("root", ADMIN_PASSWORD), ("ADMIN", ADMIN_PASSWORD)],
    )
    def test_rejects_wrong_credentials(self, admin: AdminSettings, username: str, password: str) -> None:
        assert verify_credentials(username, password, admin) is False

    def test_rejects_everything_without_hash(self) -> None:
        admin = AdminSettings(username=ADMIN_USERNAME, password_hash=None)
        assert verify_credentials(ADMIN_USERNAME, ADMIN_PASSWORD, admin) is False

    def test_rejects_malformed_hash(self) -> None:
        admin = AdminSettings(username=ADMIN_USERNAME, password_hash="not-a-bcrypt-hash")
        assert verify_credentials(ADMIN_USERNAME, ADMIN_PASSWORD, admin) is False


class TestSessionStore:
    """Idle timeout and refresh behaviour."""

    def test_touch_refreshes_last_seen(self) -> None:
        clock = Mock(return_value=1000.0)
        store = SessionStore(60, clock=clock)
        token = store.create("admin")

        clock.return_value = 1050.0
        assert store.touch(token) is not None
        clock.return_value = 1100.0
        session = store.touch(token)

        assert session is not None
        assert session.last_seen == 1100.0

    def test_expires_after_idle_timeout(self) -> None:
        clock = Mock(return_value=1000.0)
        store = SessionStore(60, clock=clock)
        token = store.create("admin")

        clock.return_value = 1060.0
        assert store.touch(token) is not None
        clock.return_value = 1121.0
        assert store.touch(token) is None
        # Expired sessions do not come back.
        clock.return_value = 1061.0
        assert store.touch(token) is None

    def test_revoke_and_unknown_tokens(self) -> None:
        store = SessionStore(60)
        token = store.create("admin")

        store.revoke(token)
        store.revoke(None)

        assert store.touch(token) is None
        assert store.touch(None) is None
        assert store.touch("forged") is None


class TestAuthEndpoint:
    """``/auth?action=login|logout|check`` over HTTP."""

    def test_login_sets_httponly_cookie(self, client: TestClient) -> None:
        resp = client.post("/auth?action=login", json=LOGIN)

        assert resp.status_code == 200
        assert resp.json()["data"] == {"username": ADMIN_USERNAME}
        cookie = resp.headers["set-cookie"]
        assert "portfolio_admin_session=" in cookie
        assert "HttpOnly" in cookie
        assert "samesite=lax" in cookie.lower()
        # Browser-session cookie: server-side idle expiry, no absolute lifetime.
        assert "max-age" not in cookie.lower()
        assert "expires" not in cookie.lower()

    def test_check_after_login(self, admin_client: TestClient) -> None:
        resp = admin_client.get("/auth?action=check")

        assert resp.status_code == 200
        assert resp.json()["data"] == {"authenticated": True, "username": ADMIN_USERNAME}

    def test_check_without_session(self, client: TestClient) -> None:
        resp = client.get("/auth?action=check")

        assert resp.status_code == 401
        assert resp.json() == {"success": False, "data": {"authenticated": False}}

    def test_logout_ends_session(self, admin_client: TestClient) -> None:
        resp = admin_client.post("/auth?action=logout")

        assert resp.status_code == 200
        assert resp.json()["message"] == "Logged out successfully"
        assert admin_client.get("/auth?action=check").status_code == 401

    def test_session_expires_when_idle(self, admin_client: TestClient, clock: Mock) -> None:
        clock.return_value += 3000
        assert admin_client.get("/auth?action=check").status_code == 200

        # The check above refreshed the session, so another 3000s is still fine.
        clock.return_value += 3000
        assert admin_client.get("/auth?action=check").status_code == 200

        clock.return_value += 3601
        assert admin_client.post("/projects", json={"title": "x"}).status_code == 401

    def test_login_requires_post(self, client: TestClient) -> None:
        resp = client.get("/auth?action=login")

        assert resp.status_code == 405
        assert resp.json()["error"]["message"] == "Invalid request method"

    def test_login_requires_both_fields(self, client: TestClient) -> None:
        resp = client.post("/auth?action=login", json={"username": ADMIN_USERNAME})

        assert resp.status_code == 400
        assert resp.json()["error"]["message"] == "Username and password are required"

    def test_login_rejects_malformed_json(self, client: TestClient) -> None:
        resp = client.post(
            "/auth?action=login",
            content=b"{not json",
            headers={"Content-Type": "application/json"},
        )

        assert resp.status_code == 400
        assert resp.json()["error"]["message"] == "Invalid JSON data"

    def test_login_rejects_wrong_password(self, client: TestClient) -> None:
        resp = client.post("/auth?action=login", json={**LOGIN, "password": "nope"})

        assert resp.status_code == 401
        assert resp.json()["error"]["message"] == "Invalid username or password"
        assert "set-cookie" not in resp.headers

    def test_unknown_action(self, client: TestClient) -> None:
        resp = client.get("/auth?action=register")

        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "invalid_action"
