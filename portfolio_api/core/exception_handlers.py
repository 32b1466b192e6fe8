"""Exception handlers producing the error envelope.

Every failure is returned in the same envelope::

    {"success": false, "error": {"code", "message", "request_id", "details"?}}

Design:
- AppError subclasses carry their own HTTP status (400, 401, 404, 405, 429, 500)
- Starlette HTTP errors (unknown route, unsupported verb) use the same envelope
- Malformed request bodies become 400 ``invalid_request``
- Unexpected Exception → generic 500 (safety net, nothing leaked)
"""

import logging
from typing import Any

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from portfolio_api.core.errors import AppError, RateLimitAppError
from portfolio_api.core.logging import get_request_id
from portfolio_api.core.middleware import current_settings

logger = logging.getLogger(__name__)

_HTTP_ERROR_CODES = {
    400: "bad_request",
    401: "unauthorized",
    403: "forbidden",
    404: "not_found",
    405: "method_not_allowed",
}


def error_response(
    status_code: int,
    code: str,
    message: str,
    details: Any = None,
    headers: dict[str, str] | None = None,
    request_id: str | None = None,
) -> JSONResponse:
    """Build the error envelope. ``details`` is included only when present."""
    error_content: dict[str, Any] = {
        "code": code,
        "message": message,
        "request_id": request_id or get_request_id(),
    }
    if details:
        error_content["details"] = details

    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": error_content},
        headers=headers,
    )


def _request_id(request: Request) -> str | None:
    """Request id, also once the middleware has cleared its context variable."""
    request_id = get_request_id() or getattr(request.state, "request_id", None)
    return request_id if isinstance(request_id, str) else None


def _rate_limit_headers(exc: RateLimitAppError) -> dict[str, str]:
    details = exc.details or {}
    return {
        "Retry-After": str(details.get("retry_after", 0)),
        "X-RateLimit-Limit": str(details.get("limit", 0)),
        "X-RateLimit-Remaining": str(details.get("remaining", 0)),
        "X-RateLimit-Reset": str(details.get("reset_at", 0)),
    }


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Handle domain application errors.

    The status code comes from the error class (``status_code`` attribute).
    Server-side failures (5xx) are logged at error level, client faults at
    warning.
    """
    status_code = exc.status_code
    log = logger.error if status_code >= 500 else logger.warning
    log(
        "app_error_handled",
        extra={
            "error_code": exc.code,
            "error_message": exc.message,
            "status_code": status_code,
            "has_details": bool(exc.details),
            "request_path": request.url.path,
            "request_id": get_request_id(),
        },
    )

    headers = None
    include_headers = current_settings(request).app.rate_limit_include_headers
    if isinstance(exc, RateLimitAppError) and include_headers:
        headers = _rate_limit_headers(exc)

    return error_response(status_code, exc.code, exc.message, exc.details, headers=headers)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Wrap routing-level HTTP errors (404 unknown path, 405 verb) in the envelope."""
    code = _HTTP_ERROR_CODES.get(exc.status_code, "http_error")
    message = exc.detail if isinstance(exc.detail, str) else "Request failed"
    logger.warning(
        "http_error_handled",
        extra={
            "status_code": exc.status_code,
            "request_path": request.url.path,
            "request_method": request.method,
        },
    )
    return error_response(exc.status_code, code, message, headers=getattr(exc, "headers", None))


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed JSON or wrongly typed fields → 400 with the offending locations."""
    violations = [
        f"{'.'.join(str(part) for part in error.get('loc', ()) if part != 'body') or 'body'}: "
        f"{error.get('msg', 'invalid')}"
        for error in exc.errors()
    ]
    logger.warning(
        "request_validation_failed",
        extra={"request_path": request.url.path, "error_count": len(violations)},
    )
    return error_response(
        400,
        "invalid_request",
        "Invalid request data",
        {"violations": violations},
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Anything not anticipated: log with traceback, answer a generic 500."""
    request_id = _request_id(request)
    logger.error(
        "unhandled_exception",
        extra={
            "error_type": type(exc).__name__,
            "error_msg": str(exc),
            "request_path": request.url.path,
            "request_method": request.method,
            "request_id": request_id,
        },
        exc_info=exc,
    )

    headers = None
    if request_id:
        headers = {current_settings(request).log.request_id_header: request_id}
    return error_response(
        500,
        "internal_server_error",
        "An unexpected error occurred. Please try again later.",
        headers=headers,
        request_id=request_id,
    )


def setup_exception_handlers(app) -> None:
    """Install the handlers on ``app``.

    Example:
        >>> from fastapi import FastAPI
        >>> from portfolio_api.core.exception_handlers import setup_exception_handlers
        >>> app = FastAPI()
        >>> setup_exception_handlers(app)
    """
    app.exception_handler(AppError)(app_error_handler)
    app.exception_handler(StarletteHTTPException)(http_exception_handler)
    app.exception_handler(RequestValidationError)(request_validation_handler)
    app.exception_handler(Exception)(general_exception_handler)
