"""JSON file storage backend.

Each collection is a JSON array in its own file. Every mutation is a
read-modify-write performed while holding :func:`locked_file`, and the new
document replaces the old one atomically. Uniqueness checks are linear scans.
"""

from __future__ import annotations

import contextlib
import logging
from pathlib import Path
from typing import Any, Iterator

from pydantic import ValidationError

from portfolio_api.adapters.storage.base import (
    AbstractContactRepository,
    AbstractProjectRepository,
    AbstractSubscriberRepository,
    already_subscribed,
    project_not_found,
)
from portfolio_api.schemas.forms import ContactSubmission, Subscriber
from portfolio_api.schemas.project import Project, ProjectCreate, ProjectUpdate, now_timestamp
from portfolio_api.utils.file_io import locked_file, read_json, write_json_atomic
from portfolio_api.utils.text import slugify, unique_slug

logger = logging.getLogger(__name__)


class JsonCollection:
    """A JSON array on disk with locked read-modify-write access."""

    def __init__(self, path: Path, *, lock_timeout: float = 10.0, indent: int | None = 2) -> None:
        self.path = Path(path)
        self._lock_timeout = lock_timeout
        self._indent = indent

    def read_all(self) -> list[Any]:
        """Every element of the array, including ones that are not objects.

        Anything but an array reads as empty.
        """
        data = read_json(self.path, default=[])
        if not isinstance(data, list):
            logger.warning("json_collection.invalid_shape", extra={"path": str(self.path)})
            return []
        return data

    def read(self) -> list[dict[str, Any]]:
        """Object elements of the array."""
        return [item for item in self.read_all() if isinstance(item, dict)]

    def write(self, items: list[Any]) -> None:
        write_json_atomic(self.path, items, indent=self._indent)

    @contextlib.contextmanager
    def locked(self) -> Iterator[None]:
        with locked_file(self.path, timeout=self._lock_timeout):
            yield


class _IdSequence:
    """High-water mark of assigned ids, stored next to the collection.

    Must be used while the collection lock is held.
    """

    def __init__(self, collection_path: Path) -> None:
        self.path = collection_path.with_name(collection_path.name + ".seq")

    def last(self) -> int:
        value = read_json(self.path, default=0)
        return value if isinstance(value, int) and not isinstance(value, bool) else 0

    def record(self, value: int) -> None:
        write_json_atomic(self.path, value)


def _parse_project(raw: dict[str, Any]) -> Project | None:
    try:
        return Project.model_validate(raw)
    except ValidationError as exc:
        logger.warning(
            "project_file.skipped_record",
            extra={"record_id": raw.get("id"), "error_count": exc.error_count()},
        )
        return None


def _record_id(item: Any) -> int | None:
    """Integer ``id`` of a raw record, whether or not the record is valid."""
    if not isinstance(item, dict):
        return None
    value = item.get("id")
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    return None


class JsonFileProjectRepository(AbstractProjectRepository):
    """Projects stored as a pretty-printed JSON array.

    Records that do not validate are hidden from reads but written back
    unchanged by every mutation, and their ids still count towards the next
    assigned id.
    """

    def __init__(self, path: Path, *, lock_timeout: float = 10.0) -> None:
        self._collection = JsonCollection(path, lock_timeout=lock_timeout)
        self._sequence = _IdSequence(self._collection.path)

    @property
    def path(self) -> Path:
        return self._collection.path

    def _load(self) -> list[Project]:
        return [p for p in (_parse_project(raw) for raw in self._collection.read()) if p]

    def seed(self, projects: list[dict[str, Any]]) -> bool:
        """Write ``projects`` if the collection file does not exist yet."""
        with self._collection.locked():
            if self.path.exists():
                return False
            self._collection.write(projects)
            logger.info("project_file.seeded", extra={"count": len(projects)})
            return True

    def list(self, *, published_only: bool = True) -> list[Project]:
        projects = self._load()
        if published_only:
            projects = [p for p in projects if p.is_published]
        return projects

    def get(self, project_id: int) -> Project:
        for project in self._load():
            if project.id == project_id:
                return project
        raise project_not_found(project_id)

    def create(self, data: ProjectCreate) -> Project:
        with self._collection.locked():
            items = self._collection.read_all()
            ids = [i for i in (_record_id(item) for item in items) if i is not None]
            new_id = max(ids + [self._sequence.last()]) + 1
            taken = {
                item["slug"] for item in items if isinstance(item, dict) and isinstance(item.get("slug"), str)
            }
            timestamp = now_timestamp()
            project = Project(
                id=new_id,
                slug=unique_slug(slugify(data.title), taken),
                created_at=timestamp,
                updated_at=timestamp,
                **data.model_dump(),
            )
            items.append(project.to_public())
            self._collection.write(items)
            self._sequence.record(new_id)

        logger.info("project.created", extra={"project_id": new_id, "backend": "file"})
        return project

    def update(self, project_id: int, changes: ProjectUpdate) -> Project:
        with self._collection.locked():
            items = self._collection.read_all()
            for index, item in enumerate(items):
                if _record_id(item) != project_id:
                    continue
                project = _parse_project(item)
                if project is None:
                    continue
                updated = project.model_copy(update={**changes.changes(), "updated_at": now_timestamp()})
                items[index] = updated.to_public()
                self._collection.write(items)
                break
            else:
                raise project_not_found(project_id)

        logger.info("project.updated", extra={"project_id": project_id, "backend": "file"})
        return updated

    def delete(self, project_id: int) -> None:
        with self._collection.locked():
            items = self._collection.read_all()
            remaining = [item for item in items if _record_id(item) != project_id]
            if len(remaining) == len(items):
                raise project_not_found(project_id)
            self._collection.write(remaining)

        logger.info("project.deleted", extra={"project_id": project_id, "backend": "file"})


class JsonFileSubscriberRepository(AbstractSubscriberRepository):
    """Subscribers stored as a JSON array of ``{email, subscribed_at, ip}``."""

    def __init__(self, path: Path, *, lock_timeout: float = 10.0) -> None:
        self._collection = JsonCollection(path, lock_timeout=lock_timeout)

    def list(self) -> list[Subscriber]:
        subscribers = []
        for raw in self._collection.read():
            try:
                subscribers.append(Subscriber.model_validate(raw))
            except ValidationError:
                continue
        return subscribers

    def exists(self, email: str) -> bool:
        return _contains_email(self._collection.read(), email)

    def add(self, subscriber: Subscriber) -> Subscriber:
        with self._collection.locked():
            items = self._collection.read_all()
            if _contains_email(items, subscriber.email):
                raise already_subscribed()
            items.append(subscriber.model_dump())
            self._collection.write(items)
        return subscriber


class JsonFileContactRepository(AbstractContactRepository):
    """Contact submissions appended to a JSON array."""

    def __init__(self, path: Path, *, lock_timeout: float = 10.0) -> None:
        self._collection = JsonCollection(path, lock_timeout=lock_timeout)

    def save(self, submission: ContactSubmission) -> None:
        with self._collection.locked():
            items = self._collection.read_all()
            items.append(submission.model_dump())
            self._collection.write(items)


def _contains_email(items: list[Any], email: str) -> bool:
    wanted = email.strip().lower()
    return any(
        isinstance(item, dict) and str(item.get("email", "")).strip().lower() == wanted
        for item in items
    )
