"""Project CRUD on top of the configured repository."""

from __future__ import annotations

from portfolio_api.adapters.storage.base import AbstractProjectRepository
from portfolio_api.core.errors import ValidationAppError
from portfolio_api.schemas.project import Project, ProjectCreate, ProjectUpdate
from portfolio_api.utils.submission_validators import validate_required
from portfolio_api.utils.text import sanitize_text

REQUIRED_FIELDS = ("title", "description", "category")
SANITIZED_FIELDS = ("title", "description", "category")


def project_id_required() -> ValidationAppError:
    return ValidationAppError(
        code="project_id_required",
        message="Project ID required",
        details={"field": "id"},
    )


class ProjectService:
    """Validation and sanitization in front of the project repository.

    Free-text fields (title, description, category) are trimmed and
    HTML-escaped before storage. URLs, image paths and tags are stored as sent.
    """

    def __init__(self, projects: AbstractProjectRepository) -> None:
        self.projects = projects

    def list_published(self) -> list[Project]:
        return self.projects.list(published_only=True)

    def get(self, project_id: int | None) -> Project:
        if not project_id:
            raise project_id_required()
        return self.projects.get(project_id)

    def create(self, data: ProjectCreate) -> Project:
        violations = validate_required(data.model_dump(), REQUIRED_FIELDS)
        if violations:
            raise ValidationAppError.from_violations(violations)

        clean = data.model_copy(
            update={field: sanitize_text(getattr(data, field)) for field in SANITIZED_FIELDS}
        )
        return self.projects.create(clean)

    def update(self, changes: ProjectUpdate) -> Project:
        if not changes.id:
            raise project_id_required()

        supplied = changes.changes()
        sanitized = {
            field: sanitize_text(supplied[field]) for field in SANITIZED_FIELDS if field in supplied
        }
        blank = [field for field, value in sanitized.items() if not value]
        if blank:
            raise ValidationAppError.from_violations(
                validate_required(sanitized, [blank[0]])
            )
        return self.projects.update(changes.id, changes.model_copy(update=sanitized))

    def delete(self, project_id: int | None) -> None:
        if not project_id:
            raise project_id_required()
        self.projects.delete(project_id)
