"""Request-scoped accessors for the service container."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import Request

from portfolio_api.core.rate_limit import get_client_ip

if TYPE_CHECKING:
    from portfolio_api.core.app_factory import ServiceContainer


def get_container(request: Request) -> "ServiceContainer":
    return request.app.state.container


def client_ip(request: Request) -> str:
    """Client address used for rate limiting and audit fields."""
    container = get_container(request)
    return get_client_ip(request, trust_forwarded_for=container.settings.app.trust_forwarded_for)
