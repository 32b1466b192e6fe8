"""Pydantic schemas for portfolio projects."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"

# Fields that can never be cleared by an explicit null in a partial update.
NON_NULLABLE_FIELDS = frozenset(
    {"title", "description", "category", "image", "technologies", "featured", "is_published"}
)


def now_timestamp() -> str:
    """Current UTC time in the ``YYYY-MM-DD HH:MM:SS`` storage format."""
    return datetime.now(timezone.utc).strftime(TIMESTAMP_FORMAT)


def _split_technologies(value: Any) -> Any:
    if value is None:
        return value
    if isinstance(value, str):
        return [tag.strip() for tag in value.split(",") if tag.strip()]
    return value


class Project(BaseModel):
    """A stored portfolio project.

    ``githubUrl`` and ``liveUrl`` keep the camelCase names the front-end reads.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: int
    title: str
    slug: str = ""
    description: str = ""
    category: str = ""
    image: str = ""
    technologies: list[str] = Field(default_factory=list)
    featured: bool = False
    is_published: bool = True
    github_url: str | None = Field(default=None, alias="githubUrl")
    live_url: str | None = Field(default=None, alias="liveUrl")
    created_at: str | None = None
    updated_at: str | None = None

    @field_validator("technologies", mode="before")
    @classmethod
    def split_technologies(cls, value: Any) -> Any:
        return _split_technologies(value)

    def to_public(self) -> dict[str, Any]:
        """Serialize for API responses and the JSON collection file."""
        return self.model_dump(by_alias=True)


class ProjectCreate(BaseModel):
    """Body of ``POST /projects``.

    Required-field checks (title, description, category) are done by the
    submission validators so the client gets the uniform violation message
    instead of a schema error.
    """

    model_config = ConfigDict(populate_by_name=True)

    title: str = ""
    description: str = ""
    category: str = ""
    image: str = ""
    technologies: list[str] = Field(default_factory=list)
    featured: bool = False
    is_published: bool = Field(default=True, alias="isPublished")
    github_url: str | None = Field(default=None, alias="githubUrl")
    live_url: str | None = Field(default=None, alias="liveUrl")

    @field_validator("technologies", mode="before")
    @classmethod
    def split_technologies(cls, value: Any) -> Any:
        return _split_technologies(value)


class ProjectUpdate(BaseModel):
    """Body of ``PUT /projects``: an explicit partial update.

    Every field defaults to "unchanged". Precedence per field:
    - present with a value: replaces the stored value
    - present as ``null``: clears ``githubUrl``/``liveUrl``; ignored for the
      other fields, which cannot be empty
    - absent: stored value is kept

    The slug is derived once at creation and is not recomputed on title
    changes so public links stay stable.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: int | None = None
    title: str | None = None
    description: str | None = None
    category: str | None = None
    image: str | None = None
    technologies: list[str] | None = None
    featured: bool | None = None
    is_published: bool | None = Field(default=None, alias="isPublished")
    github_url: str | None = Field(default=None, alias="githubUrl")
    live_url: str | None = Field(default=None, alias="liveUrl")

    @field_validator("technologies", mode="before")
    @classmethod
    def split_technologies(cls, value: Any) -> Any:
        return _split_technologies(value)

    def changes(self) -> dict[str, Any]:
        """Fields explicitly supplied by the client, keyed by attribute name."""
        supplied = self.model_dump(exclude_unset=True, exclude={"id"})
        return {
            key: value
            for key, value in supplied.items()
            if not (value is None and key in NON_NULLABLE_FIELDS)
        }
