"""Storage backend resolution.

The backend is chosen once at startup from ``STORAGE_BACKEND``:

- ``file``: JSON collections under ``STORAGE_DATA_DIR``.
- ``db``: relational tables at ``STORAGE_DATABASE_URL``; an unreachable
  database is a startup error.
- ``auto``: try the database once and fall back to files for the life of
  the process if the connection check fails.

The outcome is logged (``storage.resolved``) and returned as
:class:`StorageInfo` so ``/health`` can report it.
"""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import ArgumentError, SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from portfolio_api.adapters.storage.base import Repositories, StorageInfo
from portfolio_api.adapters.storage.json_file import (
    JsonFileContactRepository,
    JsonFileProjectRepository,
    JsonFileSubscriberRepository,
)
from portfolio_api.adapters.storage.sql import (
    Base,
    SqlContactRepository,
    SqlProjectRepository,
    SqlSubscriberRepository,
)
from portfolio_api.core.config import StorageSettings
from portfolio_api.core.errors import StorageAppError

logger = logging.getLogger(__name__)


def _safe_url(database_url: str) -> str:
    try:
        return make_url(database_url).render_as_string(hide_password=True)
    except ArgumentError:
        return "<unparseable>"


def _engine_kwargs(database_url: str) -> dict[str, Any]:
    kwargs: dict[str, Any] = {"pool_pre_ping": True}
    if not database_url.startswith("sqlite"):
        kwargs["pool_recycle"] = 3600
    return kwargs


def check_database(database_url: str | None) -> tuple[Engine | None, str | None]:
    """Connect once and run ``SELECT 1``.

    Returns:
        ``(engine, None)`` on success, ``(None, reason)`` on failure. The
        reason is the exception type name so credentials never leak.
    """

    if not database_url:
        return None, "database_url not configured"

    try:
        engine = create_engine(database_url, **_engine_kwargs(database_url))
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except (SQLAlchemyError, ImportError, ValueError) as exc:
        logger.warning(
            "storage.connect_failed",
            extra={
                "database": _safe_url(database_url),
                "error_type": type(exc).__name__,
            },
        )
        return None, type(exc).__name__
    return engine, None


def _file_repositories(storage_settings: StorageSettings, info: StorageInfo) -> Repositories:
    data_dir = storage_settings.data_dir
    timeout = storage_settings.lock_timeout_seconds
    return Repositories(
        projects=JsonFileProjectRepository(data_dir / storage_settings.projects_file, lock_timeout=timeout),
        subscribers=JsonFileSubscriberRepository(
            data_dir / storage_settings.subscribers_file, lock_timeout=timeout
        ),
        contacts=JsonFileContactRepository(data_dir / storage_settings.contacts_file, lock_timeout=timeout),
        info=info,
    )


def _sql_repositories(engine: Engine, info: StorageInfo) -> Repositories:
    Base.metadata.create_all(engine)
    sessions = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
    return Repositories(
        projects=SqlProjectRepository(sessions),
        subscribers=SqlSubscriberRepository(sessions),
        contacts=SqlContactRepository(sessions),
        info=info,
    )


def build_repositories(
    storage_settings: StorageSettings,
    *,
    seed_projects: list[dict[str, Any]] | None = None,
) -> Repositories:
    """Resolve the configured backend and build its repositories.

    Args:
        storage_settings: Storage configuration.
        seed_projects: Records written to a missing project file (file backend
            only, and only when ``STORAGE_SEED_DEMO_PROJECTS`` is on).

    Raises:
        StorageAppError: ``backend=db`` and the database cannot be reached.
    """

    requested = storage_settings.backend

    if requested == "file":
        info = StorageInfo(backend="file", requested=requested, connection="skipped")
        repositories = _file_repositories(storage_settings, info)
    else:
        engine, failure = check_database(storage_settings.database_url)
        if engine is not None:
            info = StorageInfo(backend="db", requested=requested, connection="ok")
            try:
                repositories = _sql_repositories(engine, info)
            except SQLAlchemyError as exc:
                logger.error("storage.schema_failed", extra={"error_type": type(exc).__name__})
                raise StorageAppError(
                    code="storage_unavailable",
                    message="Could not prepare database tables",
                ) from exc
        elif requested == "db":
            logger.error("storage.resolved", extra={"backend": None, "requested": requested, "connection": "failed"})
            raise StorageAppError(
                code="storage_unavailable",
                message="Database backend requested but the database is unreachable",
                details={"hint": failure or ""},
            )
        else:
            info = StorageInfo(backend="file", requested=requested, connection="failed", detail=failure)
            repositories = _file_repositories(storage_settings, info)

    logger.info(
        "storage.resolved",
        extra={
            "backend": info.backend,
            "requested": info.requested,
            "connection": info.connection,
            "detail": info.detail,
        },
    )

    if (
        info.backend == "file"
        and storage_settings.seed_demo_projects
        and seed_projects
        and isinstance(repositories.projects, JsonFileProjectRepository)
    ):
        repositories.projects.seed(seed_projects)

    return repositories
