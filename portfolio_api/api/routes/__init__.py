from __future__ import annotations

from portfolio_api.api.routes.auth import router as auth_router
from portfolio_api.api.routes.contact import router as contact_router
from portfolio_api.api.routes.health import router as health_router
from portfolio_api.api.routes.newsletter import router as newsletter_router
from portfolio_api.api.routes.portfolio import router as portfolio_router
from portfolio_api.api.routes.projects import router as projects_router

__all__ = [
    "auth_router",
    "contact_router",
    "health_router",
    "newsletter_router",
    "portfolio_router",
    "projects_router",
]
