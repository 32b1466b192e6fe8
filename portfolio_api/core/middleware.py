"""HTTP middleware: request correlation and CORS.

Registration order matters (the last registered runs first)::

    app.middleware("http")(cors_middleware)
    app.middleware("http")(request_id_middleware)
"""

from __future__ import annotations

import logging
import time
import uuid

from fastapi import Request, Response

from portfolio_api.core.config import Settings, settings
from portfolio_api.core.logging import clear_request_id, set_request_id

logger = logging.getLogger(__name__)

CORS_ALLOW_METHODS = "GET, POST, PUT, DELETE, OPTIONS"
CORS_ALLOW_HEADERS = "Content-Type, Authorization, X-Requested-With, X-Auth-Token"
CORS_MAX_AGE = "3600"


def current_settings(request: Request) -> Settings:
    """Settings of the app serving ``request``.

    Apps built by :func:`create_app` carry their own; a bare app falls back
    to the process-wide ``settings``.
    """
    container = getattr(request.app.state, "container", None)
    return container.settings if container is not None else settings


async def request_id_middleware(request: Request, call_next) -> Response:
    """Tag the request with a correlation id and log one access line.

    The id is taken from the ``LOG_REQUEST_ID_HEADER`` header (default
    ``X-Request-ID``) or generated, kept in a context variable while the
    request runs, and echoed on the response along with
    ``X-Request-Duration-ms``.
    """

    header = current_settings(request).log.request_id_header
    correlation_id = request.headers.get(header) or uuid.uuid4().hex
    set_request_id(correlation_id)
    # Outlives the context variable; the 500 handler runs after this returns.
    request.state.request_id = correlation_id
    started = time.perf_counter()
    try:
        response: Response = await call_next(request)
        elapsed_ms = round((time.perf_counter() - started) * 1000, 2)
        logger.info(
            "http.request",
            extra={
                "method": request.method,
                "path": request.url.path,
                "status_code": response.status_code,
                "duration_ms": elapsed_ms,
            },
        )
    finally:
        clear_request_id()

    response.headers[header] = correlation_id
    response.headers["X-Request-Duration-ms"] = f"{elapsed_ms:.2f}"
    return response


def parse_origins(origins: str | None) -> set[str]:
    """Parse the comma-separated CORS allow-list.

    Examples:
        >>> sorted(parse_origins("http://a.test, http://b.test "))
        ['http://a.test', 'http://b.test']
        >>> parse_origins(None)
        set()
    """
    if not origins:
        return set()
    return {origin.strip().rstrip("/") for origin in origins.split(",") if origin.strip()}


def cors_headers(origin: str | None, allowed_origins: str | None) -> dict[str, str]:
    """CORS headers for a request from ``origin``.

    ``allowed_origins`` is the comma-separated ``APP_CORS_ALLOWED_ORIGINS``.

    An allow-listed origin is echoed with credentials allowed; any other
    origin (or none) gets ``*`` without credentials.
    """
    headers = {
        "Access-Control-Allow-Methods": CORS_ALLOW_METHODS,
        "Access-Control-Allow-Headers": CORS_ALLOW_HEADERS,
        "Access-Control-Max-Age": CORS_MAX_AGE,
    }
    allowed = parse_origins(allowed_origins)
    if origin and origin.rstrip("/") in allowed:
        headers["Access-Control-Allow-Origin"] = origin
        headers["Access-Control-Allow-Credentials"] = "true"
        headers["Vary"] = "Origin"
    else:
        headers["Access-Control-Allow-Origin"] = "*"
    return headers


async def cors_middleware(request: Request, call_next) -> Response:
    """Attach CORS headers to every response; answer preflights with 204."""

    headers = cors_headers(
        request.headers.get("Origin"), current_settings(request).app.cors_allowed_origins
    )
    if request.method == "OPTIONS":
        return Response(status_code=204, headers=headers)

    response: Response = await call_next(request)
    for name, value in headers.items():
        response.headers[name] = value
    return response
