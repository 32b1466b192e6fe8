"""Pydantic schemas for public form submissions and stored form records."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, field_validator


def _as_text(value: Any) -> Any:
    # Forms post loosely typed JSON; numbers and nulls become text.
    if value is None:
        return ""
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return value


class ContactRequest(BaseModel):
    """Body of ``POST /contact``.

    Length/format rules are applied by the submission validators, which
    report every violation at once.
    """

    name: str = ""
    email: str = ""
    subject: str | None = Field(
        default=None,
        description="Defaults to 'Contact Form Submission' when omitted",
    )
    message: str = ""
    website: str = Field(
        default="",
        description="Honeypot field. Real visitors never fill it in.",
    )

    @field_validator("name", "email", "message", "website", mode="before")
    @classmethod
    def coerce_text(cls, value: Any) -> Any:
        return _as_text(value)


class NewsletterRequest(BaseModel):
    """Body of ``POST /newsletter``."""

    email: str = ""

    @field_validator("email", mode="before")
    @classmethod
    def coerce_text(cls, value: Any) -> Any:
        return _as_text(value)


class ContactSubmission(BaseModel):
    """A contact message as persisted (write-only)."""

    name: str
    email: str
    subject: str
    message: str
    ip: str
    created_at: str


class Subscriber(BaseModel):
    """A newsletter subscriber as persisted."""

    email: str
    subscribed_at: str
    ip: str = ""
