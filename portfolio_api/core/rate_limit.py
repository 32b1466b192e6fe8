"""Rate limiting glue between the HTTP layer and the limiter adapter.

Rate limiting strategy:
- Sliding window per client address, namespaced per endpoint
  (``contact:<ip>``, ``newsletter:<ip>``) so each form has its own budget.
- State is persisted in a JSON file by default so every worker shares it.
"""

from __future__ import annotations

import ipaddress
import logging
from typing import Callable

from fastapi import Request

from portfolio_api.adapters.rate_limit import (
    AbstractRateLimiter,
    InMemoryRateLimitStore,
    JsonFileRateLimitStore,
    SlidingWindowRateLimiter,
)
from portfolio_api.core.config import AppSettings, StorageSettings
from portfolio_api.core.errors import RateLimitAppError
from portfolio_api.core.logging import hash_identity

logger = logging.getLogger(__name__)


def build_rate_limiter(
    app_settings: AppSettings,
    storage_settings: StorageSettings,
    *,
    clock: Callable[[], float] | None = None,
) -> SlidingWindowRateLimiter:
    """Create the limiter configured by ``APP_RATE_LIMIT_STORE``."""

    if app_settings.rate_limit_store == "memory":
        store = InMemoryRateLimitStore()
    else:
        store = JsonFileRateLimitStore(
            storage_settings.data_dir / storage_settings.rate_limit_file,
            lock_timeout=storage_settings.lock_timeout_seconds,
        )

    logger.info(
        "rate_limit.configured",
        extra={
            "store": app_settings.rate_limit_store,
            "enabled": app_settings.rate_limit_enabled,
            "window_s": app_settings.rate_limit_window_seconds,
        },
    )
    if clock is None:
        return SlidingWindowRateLimiter(store)
    return SlidingWindowRateLimiter(store, clock=clock)


def _first_valid_ip(candidates: str) -> str | None:
    for candidate in candidates.split(","):
        candidate = candidate.strip()
        try:
            ipaddress.ip_address(candidate)
        except ValueError:
            continue
        return candidate
    return None


def get_client_ip(request: Request, *, trust_forwarded_for: bool = False) -> str:
    """Resolve the client address used as the rate limiting identity.

    Args:
        request: Incoming request.
        trust_forwarded_for: Honour ``X-Forwarded-For`` (set when behind a proxy).

    Returns:
        The first valid forwarded IP, else the socket peer, else ``0.0.0.0``.
    """

    if trust_forwarded_for:
        forwarded = request.headers.get("X-Forwarded-For")
        if forwarded:
            ip = _first_valid_ip(forwarded)
            if ip:
                return ip

    if request.client and request.client.host:
        return request.client.host
    return "0.0.0.0"


def enforce_rate_limit(
    limiter: AbstractRateLimiter,
    *,
    scope: str,
    client_ip: str,
    limit: int,
    window_seconds: int,
    message: str = "Too many requests. Please try again later.",
) -> None:
    """Consume one unit of ``client_ip``'s budget for ``scope``.

    Raises:
        RateLimitAppError: 429 when the client is over budget.
    """

    identity = f"{scope}:{client_ip}"
    identity_hash = hash_identity(identity)

    result = limiter.admit(identity, limit=limit, window_seconds=window_seconds)
    if result.allowed:
        logger.info(
            "rate_limit.allowed",
            extra={
                "scope": scope,
                "identity_hash": identity_hash,
                "limit": result.limit,
                "remaining": result.remaining,
                "window_s": window_seconds,
            },
        )
        return

    logger.warning(
        "rate_limit.exceeded",
        extra={
            "scope": scope,
            "identity_hash": identity_hash,
            "limit": result.limit,
            "window_s": window_seconds,
            "retry_after_s": result.retry_after_seconds,
        },
    )
    raise RateLimitAppError(
        code="rate_limited",
        message=message,
        details={
            "limit": result.limit,
            "remaining": result.remaining,
            "reset_at": result.reset_at,
            "retry_after": result.retry_after_seconds or 0,
        },
    )
