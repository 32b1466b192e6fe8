"""Tests for the JSON file storage backend."""

import json
import threading
from pathlib import Path

import pytest

from portfolio_api.adapters.storage.json_file import (
    JsonFileContactRepository,
    JsonFileProjectRepository,
    JsonFileSubscriberRepository,
)
from portfolio_api.core.errors import NotFoundAppError, ValidationAppError
from portfolio_api.schemas.forms import ContactSubmission, Subscriber
from portfolio_api.schemas.project import ProjectCreate, ProjectUpdate


@pytest.fixture
def projects(tmp_path: Path) -> JsonFileProjectRepository:
    return JsonFileProjectRepository(tmp_path / "projects.json")


def _create(repo: JsonFileProjectRepository, title: str = "My Project", **fields):
    data = {"title": title, "description": "Desc", "category": "Web", **fields}
    return repo.create(ProjectCreate(**data))


class TestProjectIds:
    def test_create_assigns_max_plus_one(self, tmp_path: Path) -> None:
        path = tmp_path / "projects.json"
        path.write_text(json.dumps([{"id": 3, "title": "A"}, {"id": 7, "title": "B"}]))
        repo = JsonFileProjectRepository(path)

        assert _create(repo).id == 8

    def test_first_project_gets_id_one(self, projects: JsonFileProjectRepository) -> None:
        assert _create(projects).id == 1

    def test_deleted_highest_id_is_not_reused(self, projects: JsonFileProjectRepository) -> None:
        _create(projects, "One")
        second = _create(projects, "Two")
        projects.delete(second.id)

        third = _create(projects, "Three")

        assert third.id == 3
        assert [p.id for p in projects.list()] == [1, 3]


class TestProjectCrud:
    def test_create_populates_slug_and_timestamps(self, projects: JsonFileProjectRepository) -> None:
        project = _create(projects, "Café Ordering App!", technologies="Python, FastAPI")

        assert project.slug == "cafe-ordering-app"
        assert project.technologies == ["Python", "FastAPI"]
        assert project.created_at
        assert project.updated_at == project.created_at
        assert project.is_published is True

    def test_same_title_gets_distinct_slugs(self, projects: JsonFileProjectRepository) -> None:
        slugs = [_create(projects, "Same Title").slug for _ in range(3)]

        assert slugs == ["same-title", "same-title-2", "same-title-3"]

    def test_file_uses_camel_case_link_names(self, projects: JsonFileProjectRepository) -> None:
        _create(projects, githubUrl="https://github.com/me/repo")

        stored = json.loads(projects.path.read_text())[0]
        assert stored["githubUrl"] == "https://github.com/me/repo"
        assert stored["liveUrl"] is None
        assert "github_url" not in stored

    def test_list_skips_unpublished(self, projects: JsonFileProjectRepository) -> None:
        _create(projects, "Visible")
        _create(projects, "Hidden", isPublished=False)

        assert [p.title for p in projects.list()] == ["Visible"]
        assert len(projects.list(published_only=False)) == 2

    def test_get_missing_raises_not_found(self, projects: JsonFileProjectRepository) -> None:
        with pytest.raises(NotFoundAppError) as exc_info:
            projects.get(42)

        assert exc_info.value.message == "Project not found"

    def test_delete_missing_leaves_file_unchanged(self, projects: JsonFileProjectRepository) -> None:
        _create(projects)
        before = projects.path.read_bytes()

        with pytest.raises(NotFoundAppError):
            projects.delete(999)

        assert projects.path.read_bytes() == before

    def test_corrupt_file_reads_as_empty(self, tmp_path: Path) -> None:
        path = tmp_path / "projects.json"
        path.write_text("{broken")

        assert JsonFileProjectRepository(path).list() == []

    def test_invalid_records_are_skipped(self, tmp_path: Path) -> None:
        path = tmp_path / "projects.json"
        path.write_text(json.dumps([{"id": "x"}, {"id": 2, "title": "Ok"}, "junk"]))

        assert [p.id for p in JsonFileProjectRepository(path).list()] == [2]

    def test_invalid_records_survive_mutations(self, tmp_path: Path) -> None:
        path = tmp_path / "projects.json"
        legacy = {"id": 7, "title": None, "slug": "legacy"}
        path.write_text(json.dumps([legacy, "junk"]))
        repo = JsonFileProjectRepository(path)

        created = _create(repo, "New")
        other = _create(repo, "Other")
        repo.update(created.id, ProjectUpdate(id=created.id, category="Tools"))
        repo.delete(other.id)

        stored = json.loads(path.read_text())
        assert created.id == 8
        assert stored[0] == legacy
        assert stored[1] == "junk"
        assert [item["id"] for item in stored[2:]] == [8]
        assert stored[2]["category"] == "Tools"

    def test_invalid_record_cannot_be_updated_but_can_be_deleted(self, tmp_path: Path) -> None:
        path = tmp_path / "projects.json"
        path.write_text(json.dumps([{"id": 4, "title": None}]))
        repo = JsonFileProjectRepository(path)

        with pytest.raises(NotFoundAppError):
            repo.update(4, ProjectUpdate(id=4, title="Fixed"))
        repo.delete(4)

        assert json.loads(path.read_text()) == []

    def test_seed_only_writes_missing_file(self, projects: JsonFileProjectRepository) -> None:
        assert projects.seed([{"id": 1, "title": "Seeded"}]) is True
        assert projects.seed([{"id": 9, "title": "Other"}]) is False

        assert [p.title for p in projects.list()] == ["Seeded"]


class TestPartialUpdate:
    def test_only_supplied_fields_change(self, projects: JsonFileProjectRepository) -> None:
        created = _create(projects, liveUrl="https://live.example.org", featured=True)

        updated = projects.update(created.id, ProjectUpdate(id=created.id, title="New Title"))

        assert updated.title == "New Title"
        assert updated.description == "Desc"
        assert updated.featured is True
        assert updated.live_url == "https://live.example.org"
        assert updated.slug == created.slug

    def test_null_clears_links_but_not_required_fields(self, projects: JsonFileProjectRepository) -> None:
        created = _create(projects, liveUrl="https://live.example.org")
        changes = ProjectUpdate.model_validate({"id": created.id, "liveUrl": None, "title": None})

        updated = projects.update(created.id, changes)

        assert updated.live_url is None
        assert updated.title == "My Project"

    def test_update_missing_raises_not_found(self, projects: JsonFileProjectRepository) -> None:
        with pytest.raises(NotFoundAppError):
            projects.update(5, ProjectUpdate(id=5, title="x"))


def test_concurrent_creates_lose_no_updates(projects: JsonFileProjectRepository) -> None:
    errors: list[Exception] = []

    def worker(index: int) -> None:
        try:
            for n in range(5):
                _create(projects, f"Project {index}-{n}")
        except Exception as exc:  # pragma: no cover - surfaced by the assert below
            errors.append(exc)

    threads = [threading.Thread(target=worker, args=(i,)) for i in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert errors == []
    stored = projects.list()
    assert len(stored) == 40
    assert sorted(p.id for p in stored) == list(range(1, 41))


class TestSubscribers:
    def test_add_and_exists_case_insensitive(self, tmp_path: Path) -> None:
        repo = JsonFileSubscriberRepository(tmp_path / "subscribers.json")
        repo.add(Subscriber(email="Reader@Mail.org", subscribed_at="2024-01-01 00:00:00"))

        assert repo.exists("reader@mail.org") is True
        assert repo.exists("other@mail.org") is False

    def test_duplicate_is_rejected_and_file_unchanged(self, tmp_path: Path) -> None:
        repo = JsonFileSubscriberRepository(tmp_path / "subscribers.json")
        repo.add(Subscriber(email="reader@mail.org", subscribed_at="2024-01-01 00:00:00"))
        before = (tmp_path / "subscribers.json").read_bytes()

        with pytest.raises(ValidationAppError) as exc_info:
            repo.add(Subscriber(email="READER@mail.org", subscribed_at="2024-01-02 00:00:00"))

        assert exc_info.value.code == "already_subscribed"
        assert (tmp_path / "subscribers.json").read_bytes() == before
        assert len(repo.list()) == 1


def test_contacts_are_appended(tmp_path: Path) -> None:
    repo = JsonFileContactRepository(tmp_path / "contacts.json")
    for name in ("Ann", "Bob"):
        repo.save(
            ContactSubmission(
                name=name,
                email=f"{name.lower()}@mail.org",
                subject="Hi",
                message="Hello there, friend",
                ip="10.0.0.1",
                created_at="2024-01-01 00:00:00",
            )
        )

    stored = json.loads((tmp_path / "contacts.json").read_text())
    assert [item["name"] for item in stored] == ["Ann", "Bob"]
