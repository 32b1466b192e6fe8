"""Application factory for the FastAPI app.

Centralizes app construction (metadata, middleware, handlers, routers) and
wires the storage backend, rate limiter, mailer and services into a
:class:`ServiceContainer` stored on ``app.state.container``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable

from fastapi import FastAPI

from portfolio_api.adapters.mail import AbstractMailer, create_mailer
from portfolio_api.adapters.rate_limit import SlidingWindowRateLimiter
from portfolio_api.adapters.storage import Repositories, build_repositories
from portfolio_api.api.routes import (
    auth_router,
    contact_router,
    health_router,
    newsletter_router,
    portfolio_router,
    projects_router,
)
from portfolio_api.core.auth import SessionStore
from portfolio_api.core.config import Settings, settings as default_settings
from portfolio_api.core.exception_handlers import setup_exception_handlers
from portfolio_api.core.logging import configure_logging
from portfolio_api.core.middleware import cors_middleware, request_id_middleware
from portfolio_api.core.rate_limit import build_rate_limiter
from portfolio_api.services.contact_service import ContactService
from portfolio_api.services.newsletter_service import NewsletterService
from portfolio_api.services.portfolio_data import demo_projects
from portfolio_api.services.project_service import ProjectService

logger = logging.getLogger(__name__)


@dataclass
class ServiceContainer:
    """Process-wide collaborators shared by every request."""

    settings: Settings
    repositories: Repositories
    limiter: SlidingWindowRateLimiter
    mailer: AbstractMailer
    sessions: SessionStore
    projects: ProjectService
    contact: ContactService
    newsletter: NewsletterService


def build_container(
    app_settings: Settings,
    *,
    mailer: AbstractMailer | None = None,
    clock: Callable[[], float] | None = None,
) -> ServiceContainer:
    """Resolve storage, build adapters and services.

    Args:
        app_settings: Settings to build from.
        mailer: Mail transport override (tests pass a recording fake).
        clock: Time source for the rate limiter and sessions.
    """
    repositories = build_repositories(app_settings.storage, seed_projects=demo_projects())
    limiter = build_rate_limiter(app_settings.app, app_settings.storage, clock=clock)
    mailer = mailer or create_mailer(app_settings.mail)
    if clock is None:
        sessions = SessionStore(app_settings.admin.session_timeout_seconds)
    else:
        sessions = SessionStore(app_settings.admin.session_timeout_seconds, clock=clock)

    return ServiceContainer(
        settings=app_settings,
        repositories=repositories,
        limiter=limiter,
        mailer=mailer,
        sessions=sessions,
        projects=ProjectService(repositories.projects),
        contact=ContactService(
            repositories.contacts,
            mailer,
            limiter,
            app_settings=app_settings.app,
            mail_settings=app_settings.mail,
            persist=app_settings.storage.persist_contacts,
        ),
        newsletter=NewsletterService(
            repositories.subscribers,
            mailer,
            limiter,
            app_settings=app_settings.app,
            mail_settings=app_settings.mail,
        ),
    )


def create_app(
    app_settings: Settings | None = None,
    *,
    mailer: AbstractMailer | None = None,
    clock: Callable[[], float] | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application instance.

    Returns:
        Configured FastAPI app with middleware, handlers and routers.
    """
    app_settings = app_settings or default_settings

    # Logging first so subsequent init logs are formatted as desired
    configure_logging(app_settings.log)

    app = FastAPI(
        title="Portfolio API",
        description=(
            "Backend for a personal portfolio: projects CRUD, static portfolio "
            "data, contact form and newsletter signups with rate limiting."
        ),
        version="1.0.0",
        debug=app_settings.app.debug,
    )
    app.state.container = build_container(app_settings, mailer=mailer, clock=clock)

    # Middleware (last registered runs first)
    app.middleware("http")(cors_middleware)
    app.middleware("http")(request_id_middleware)

    # Exception handlers
    setup_exception_handlers(app)

    # Routers
    app.include_router(projects_router)
    app.include_router(contact_router)
    app.include_router(newsletter_router)
    app.include_router(portfolio_router)
    app.include_router(auth_router)
    app.include_router(health_router)

    logger.info(
        "app.started",
        extra={
            "app_env": app_settings.app_env,
            "storage_backend": app.state.container.repositories.info.backend,
            "mail_backend": app_settings.mail.backend,
        },
    )
    return app
