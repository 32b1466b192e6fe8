"""Relational storage backend (SQLAlchemy ORM).

All statements are built through the ORM, so every value is bound as a query
parameter. The unique constraints on ``projects.slug`` and
``newsletter_subscriptions.email`` back up the application-level checks.
"""

from __future__ import annotations

import contextlib
import logging
from datetime import datetime, timezone
from typing import Iterator

from sqlalchemy import Boolean, Column, DateTime, Integer, String, Text, func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from portfolio_api.adapters.storage.base import (
    AbstractContactRepository,
    AbstractProjectRepository,
    AbstractSubscriberRepository,
    already_subscribed,
    project_not_found,
)
from portfolio_api.core.errors import StorageAppError
from portfolio_api.schemas.forms import ContactSubmission, Subscriber
from portfolio_api.schemas.project import TIMESTAMP_FORMAT, Project, ProjectCreate, ProjectUpdate
from portfolio_api.utils.text import slugify, unique_slug

logger = logging.getLogger(__name__)

Base = declarative_base()

# Attempts at inserting a project when a concurrent writer takes the same slug.
SLUG_INSERT_ATTEMPTS = 3


class ProjectRow(Base):
    """Portfolio project."""
    __tablename__ = "projects"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(255), nullable=False)
    slug = Column(String(255), nullable=False, unique=True, index=True)
    description = Column(Text, nullable=True)
    category = Column(String(100), nullable=True)
    image = Column(String(255), nullable=True)
    live_url = Column(String(255), nullable=True)
    github_url = Column(String(255), nullable=True)
    tech_tags = Column(Text, nullable=True)  # comma separated
    featured = Column(Boolean, default=False, nullable=False)
    is_published = Column(Boolean, default=True, nullable=False, index=True)
    created_at = Column(DateTime, default=lambda: _utcnow(), nullable=False)
    updated_at = Column(DateTime, nullable=True)


class SubscriberRow(Base):
    """Newsletter subscription."""
    __tablename__ = "newsletter_subscriptions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String(255), nullable=False, unique=True)
    subscribed_at = Column(DateTime, default=lambda: _utcnow(), nullable=False)
    ip_address = Column(String(45), nullable=True)


class ContactRow(Base):
    """Contact form submission."""
    __tablename__ = "contacts"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=False, index=True)
    subject = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    ip_address = Column(String(45), nullable=True)
    created_at = Column(DateTime, default=lambda: _utcnow(), nullable=False, index=True)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _format(value: datetime | None) -> str | None:
    return value.strftime(TIMESTAMP_FORMAT) if value else None


def _parse(value: str) -> datetime:
    try:
        return datetime.strptime(value, TIMESTAMP_FORMAT)
    except ValueError:
        return _utcnow()


def _join_tags(tags: list[str]) -> str:
    return ",".join(tags)


def _split_tags(raw: str | None) -> list[str]:
    return [tag for tag in (raw or "").split(",") if tag]


def _row_to_project(row: ProjectRow) -> Project:
    return Project(
        id=row.id,
        title=row.title,
        slug=row.slug,
        description=row.description or "",
        category=row.category or "",
        image=row.image or "",
        technologies=_split_tags(row.tech_tags),
        featured=bool(row.featured),
        is_published=bool(row.is_published),
        github_url=row.github_url,
        live_url=row.live_url,
        created_at=_format(row.created_at),
        updated_at=_format(row.updated_at),
    )


@contextlib.contextmanager
def _storage_errors(operation: str) -> Iterator[None]:
    """Translate driver errors into ``StorageAppError``; details go to the log only."""
    try:
        yield
    except SQLAlchemyError as exc:
        logger.error(
            "sql_storage.error",
            extra={"operation": operation, "error_type": type(exc).__name__, "error_msg": str(exc)},
        )
        raise StorageAppError(
            code="storage_error",
            message="A storage error occurred. Please try again later.",
        ) from exc


class SqlProjectRepository(AbstractProjectRepository):
    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self._sessions = session_factory

    def list(self, *, published_only: bool = True) -> list[Project]:
        stmt = select(ProjectRow).order_by(ProjectRow.created_at.desc(), ProjectRow.id.desc())
        if published_only:
            stmt = stmt.where(ProjectRow.is_published.is_(True))
        with _storage_errors("projects.list"), self._sessions() as session:
            return [_row_to_project(row) for row in session.scalars(stmt)]

    def get(self, project_id: int) -> Project:
        with _storage_errors("projects.get"), self._sessions() as session:
            row = session.get(ProjectRow, project_id)
            if row is None:
                raise project_not_found(project_id)
            return _row_to_project(row)

    def _taken_slugs(self, session: Session, base: str) -> set[str]:
        stmt = select(ProjectRow.slug).where(ProjectRow.slug.like(f"{base}%"))
        return set(session.scalars(stmt))

    def create(self, data: ProjectCreate) -> Project:
        base = slugify(data.title)
        for attempt in range(1, SLUG_INSERT_ATTEMPTS + 1):
            try:
                with _storage_errors("projects.create"), self._sessions.begin() as session:
                    now = _utcnow()
                    row = ProjectRow(
                        title=data.title,
                        slug=unique_slug(base, self._taken_slugs(session, base)),
                        description=data.description,
                        category=data.category,
                        image=data.image,
                        live_url=data.live_url,
                        github_url=data.github_url,
                        tech_tags=_join_tags(data.technologies),
                        featured=data.featured,
                        is_published=data.is_published,
                        created_at=now,
                        updated_at=now,
                    )
                    session.add(row)
                    session.flush()
                    project = _row_to_project(row)
            except StorageAppError as exc:
                if isinstance(exc.__cause__, IntegrityError) and attempt < SLUG_INSERT_ATTEMPTS:
                    logger.warning("project.slug_conflict", extra={"slug_base": base, "attempt": attempt})
                    continue
                raise
            logger.info("project.created", extra={"project_id": project.id, "backend": "db"})
            return project

        raise StorageAppError(code="storage_error", message="Could not create project")

    def update(self, project_id: int, changes: ProjectUpdate) -> Project:
        with _storage_errors("projects.update"), self._sessions.begin() as session:
            row = session.get(ProjectRow, project_id)
            if row is None:
                raise project_not_found(project_id)
            for field, value in changes.changes().items():
                if field == "technologies":
                    row.tech_tags = _join_tags(value)
                else:
                    setattr(row, field, value)
            row.updated_at = _utcnow()
            session.flush()
            project = _row_to_project(row)

        logger.info("project.updated", extra={"project_id": project_id, "backend": "db"})
        return project

    def delete(self, project_id: int) -> None:
        with _storage_errors("projects.delete"), self._sessions.begin() as session:
            row = session.get(ProjectRow, project_id)
            if row is None:
                raise project_not_found(project_id)
            session.delete(row)

        logger.info("project.deleted", extra={"project_id": project_id, "backend": "db"})


class SqlSubscriberRepository(AbstractSubscriberRepository):
    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self._sessions = session_factory

    def list(self) -> list[Subscriber]:
        with _storage_errors("subscribers.list"), self._sessions() as session:
            rows = session.scalars(select(SubscriberRow).order_by(SubscriberRow.id))
            return [
                Subscriber(
                    email=row.email,
                    subscribed_at=_format(row.subscribed_at) or "",
                    ip=row.ip_address or "",
                )
                for row in rows
            ]

    def _exists(self, session: Session, email: str) -> bool:
        stmt = select(func.count(SubscriberRow.id)).where(
            func.lower(SubscriberRow.email) == email.strip().lower()
        )
        return bool(session.scalar(stmt))

    def exists(self, email: str) -> bool:
        with _storage_errors("subscribers.exists"), self._sessions() as session:
            return self._exists(session, email)

    def add(self, subscriber: Subscriber) -> Subscriber:
        try:
            with _storage_errors("subscribers.add"), self._sessions.begin() as session:
                if self._exists(session, subscriber.email):
                    raise already_subscribed()
                session.add(
                    SubscriberRow(
                        email=subscriber.email,
                        subscribed_at=_parse(subscriber.subscribed_at),
                        ip_address=subscriber.ip,
                    )
                )
        except StorageAppError as exc:
            if isinstance(exc.__cause__, IntegrityError):
                raise already_subscribed() from exc
            raise
        return subscriber


class SqlContactRepository(AbstractContactRepository):
    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self._sessions = session_factory

    def save(self, submission: ContactSubmission) -> None:
        with _storage_errors("contacts.save"), self._sessions.begin() as session:
            session.add(
                ContactRow(
                    name=submission.name,
                    email=submission.email,
                    subject=submission.subject,
                    message=submission.message,
                    ip_address=submission.ip,
                    created_at=_parse(submission.created_at),
                )
            )
