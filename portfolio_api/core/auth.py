"""Admin authentication: credential check and cookie sessions.

Sessions are opaque random tokens kept in process memory with an idle
timeout; every successful check refreshes the timeout. Restarting the process
logs the admin out.
"""

from __future__ import annotations

import logging
import secrets
import threading
import time
from dataclasses import dataclass
from typing import Callable

import bcrypt
from fastapi import Request

from portfolio_api.core.config import AdminSettings
from portfolio_api.core.errors import AuthenticationAppError
from portfolio_api.core.logging import hash_identity

logger = logging.getLogger(__name__)


def hash_password(password: str) -> str:
    """bcrypt hash suitable for ``ADMIN_PASSWORD_HASH``."""
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_credentials(username: str, password: str, admin_settings: AdminSettings) -> bool:
    """Compare against the configured admin username and bcrypt hash.

    Always False when no hash is configured.
    """
    if not admin_settings.password_hash:
        logger.error("auth.password_hash_missing")
        return False

    username_ok = secrets.compare_digest(username.encode("utf-8"), admin_settings.username.encode("utf-8"))
    try:
        password_ok = bcrypt.checkpw(password.encode("utf-8"), admin_settings.password_hash.encode("utf-8"))
    except ValueError:
        logger.error("auth.password_hash_invalid")
        return False
    return username_ok and password_ok


@dataclass
class AdminSession:
    username: str
    last_seen: float


class SessionStore:
    """In-memory admin sessions with an idle timeout."""

    def __init__(self, timeout_seconds: int, *, clock: Callable[[], float] = time.time) -> None:
        self.timeout_seconds = timeout_seconds
        self._clock = clock
        self._sessions: dict[str, AdminSession] = {}
        self._lock = threading.Lock()

    def create(self, username: str) -> str:
        token = secrets.token_urlsafe(32)
        with self._lock:
            self._sessions[token] = AdminSession(username=username, last_seen=self._clock())
        return token

    def touch(self, token: str | None) -> AdminSession | None:
        """Return the live session for ``token`` and refresh it, or None.

        Expired sessions are removed.
        """
        if not token:
            return None
        now = self._clock()
        with self._lock:
            session = self._sessions.get(token)
            if session is None:
                return None
            if now - session.last_seen > self.timeout_seconds:
                del self._sessions[token]
                logger.info("auth.session_expired", extra={"user_hash": hash_identity(session.username)})
                return None
            session.last_seen = now
            return session

    def revoke(self, token: str | None) -> None:
        if not token:
            return
        with self._lock:
            self._sessions.pop(token, None)


def require_admin(request: Request) -> AdminSession:
    """FastAPI dependency guarding admin-only operations.

    Usage:
        @router.post("/projects", dependencies=[Depends(require_admin)])

    Raises:
        AuthenticationAppError: 401 when the session cookie is missing,
            unknown or expired.
    """
    container = request.app.state.container
    token = request.cookies.get(container.settings.admin.session_cookie_name)
    session = container.sessions.touch(token)
    if session is None:
        logger.warning(
            "auth.unauthorized",
            extra={"path": request.url.path, "cookie_present": bool(token)},
        )
        raise AuthenticationAppError(
            code="unauthorized",
            message="Unauthorized. Please login.",
        )
    return session
