"""Admin session endpoints: ``/auth?action=login|logout|check``."""

from __future__ import annotations

import json
import logging

from fastapi import APIRouter, Depends, Query, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from portfolio_api.api.dependencies import get_container
from portfolio_api.core.auth import verify_credentials
from portfolio_api.core.errors import (
    AuthenticationAppError,
    MethodNotAllowedAppError,
    ValidationAppError,
)
from portfolio_api.core.logging import hash_identity
from portfolio_api.schemas.responses import AuthStatus, Envelope, LoginRequest

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Auth"])


async def _read_login(request: Request) -> LoginRequest:
    body = await request.body()
    if not body:
        return LoginRequest()
    try:
        return LoginRequest.model_validate(json.loads(body))
    except (ValueError, ValidationError) as exc:
        raise ValidationAppError(code="invalid_request", message="Invalid JSON data") from exc


async def _login(request: Request, container) -> JSONResponse:
    if request.method != "POST":
        raise MethodNotAllowedAppError(code="method_not_allowed", message="Invalid request method")

    credentials = await _read_login(request)
    if not credentials.username or not credentials.password:
        raise ValidationAppError.from_violations(["Username and password are required"])

    admin = container.settings.admin
    valid = await run_in_threadpool(
        verify_credentials, credentials.username, credentials.password, admin
    )
    if not valid:
        logger.warning("auth.login_failed", extra={"user_hash": hash_identity(credentials.username)})
        raise AuthenticationAppError(code="invalid_credentials", message="Invalid username or password")

    token = container.sessions.create(credentials.username)
    logger.info("auth.login_succeeded", extra={"user_hash": hash_identity(credentials.username)})

    response = JSONResponse(
        Envelope(message="Login successful", data={"username": credentials.username}).dump()
    )
    response.set_cookie(
        admin.session_cookie_name,
        token,
        # Browser-session cookie; the idle timeout is enforced by the session store.
        httponly=True,
        secure=admin.cookie_secure,
        samesite="lax",
    )
    return response


def _logout(request: Request, container) -> JSONResponse:
    cookie_name = container.settings.admin.session_cookie_name
    container.sessions.revoke(request.cookies.get(cookie_name))
    logger.info("auth.logout")

    response = JSONResponse(Envelope(message="Logged out successfully").dump())
    response.delete_cookie(cookie_name)
    return response


def _check(request: Request, container) -> JSONResponse:
    token = request.cookies.get(container.settings.admin.session_cookie_name)
    session = container.sessions.touch(token)
    if session is None:
        status = AuthStatus(authenticated=False)
        return JSONResponse(
            Envelope(success=False, data=status.model_dump(exclude_none=True)).dump(),
            status_code=401,
        )
    status = AuthStatus(authenticated=True, username=session.username)
    return JSONResponse(Envelope(data=status.model_dump()).dump())


@router.api_route("/auth", methods=["GET", "POST"])
async def auth(
    request: Request,
    action: str = Query("", description="login, logout or check"),
    container=Depends(get_container),
) -> JSONResponse:
    """Admin login/logout/status.

    - ``login`` (POST only): ``{username, password}``; sets the session cookie
    - ``logout``: revokes the session and clears the cookie
    - ``check``: 200 with the username, or 401 ``{"authenticated": false}``

    Raises:
        ValidationAppError: 400 unknown action or missing credentials.
        AuthenticationAppError: 401 wrong credentials.
        MethodNotAllowedAppError: 405 login with a verb other than POST.
    """
    if action == "login":
        return await _login(request, container)
    if action == "logout":
        return _logout(request, container)
    if action == "check":
        return _check(request, container)
    raise ValidationAppError(code="invalid_action", message="Invalid action", details={"field": "action"})
