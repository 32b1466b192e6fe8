"""Repository interfaces shared by the relational and JSON file backends."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

from portfolio_api.core.errors import NotFoundAppError, ValidationAppError
from portfolio_api.schemas.forms import ContactSubmission, Subscriber
from portfolio_api.schemas.project import Project, ProjectCreate, ProjectUpdate


class AbstractProjectRepository(ABC):
    """CRUD over portfolio projects.

    ``get``, ``update`` and ``delete`` raise ``NotFoundAppError`` for an
    unknown id. ``create`` assigns the id and a slug unique within the
    collection.
    """

    @abstractmethod
    def list(self, *, published_only: bool = True) -> list[Project]:
        raise NotImplementedError

    @abstractmethod
    def get(self, project_id: int) -> Project:
        raise NotImplementedError

    @abstractmethod
    def create(self, data: ProjectCreate) -> Project:
        raise NotImplementedError

    @abstractmethod
    def update(self, project_id: int, changes: ProjectUpdate) -> Project:
        raise NotImplementedError

    @abstractmethod
    def delete(self, project_id: int) -> None:
        raise NotImplementedError


class AbstractSubscriberRepository(ABC):
    """Newsletter subscribers, unique by (case-insensitive) email."""

    @abstractmethod
    def list(self) -> list[Subscriber]:
        raise NotImplementedError

    @abstractmethod
    def exists(self, email: str) -> bool:
        raise NotImplementedError

    @abstractmethod
    def add(self, subscriber: Subscriber) -> Subscriber:
        """Append a subscriber.

        Raises:
            ValidationAppError: code ``already_subscribed`` when the email exists.
        """
        raise NotImplementedError


class AbstractContactRepository(ABC):
    """Write-only sink for contact submissions."""

    @abstractmethod
    def save(self, submission: ContactSubmission) -> None:
        raise NotImplementedError


@dataclass(frozen=True)
class StorageInfo:
    """Outcome of backend resolution, exposed on ``/health``.

    Attributes:
        backend: Backend in use (``db`` or ``file``).
        requested: Configured policy (``auto``, ``db`` or ``file``).
        connection: ``ok``, ``failed`` or ``skipped``.
        detail: Connection failure reason (never credentials).
    """

    backend: str
    requested: str
    connection: str
    detail: str | None = None


@dataclass(frozen=True)
class Repositories:
    projects: AbstractProjectRepository
    subscribers: AbstractSubscriberRepository
    contacts: AbstractContactRepository
    info: StorageInfo


def project_not_found(project_id: int) -> NotFoundAppError:
    return NotFoundAppError(
        code="project_not_found",
        message="Project not found",
        details={"id": project_id},
    )


def already_subscribed() -> ValidationAppError:
    return ValidationAppError(
        code="already_subscribed",
        message="This email is already subscribed",
    )
