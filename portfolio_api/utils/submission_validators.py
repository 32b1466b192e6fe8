"""Validation rules for public form submissions and project payloads.

All functions are pure: they take already-sanitized values and return the
list of human-readable violations in field order, so the client sees every
problem at once.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Sequence

from email_validator import EmailNotValidError, validate_email

DEFAULT_SUBJECT = "Contact Form Submission"


@dataclass(frozen=True)
class ContactRules:
    """Inclusive length bounds for contact fields."""

    min_name_length: int = 2
    max_name_length: int = 100
    min_message_length: int = 10
    max_message_length: int = 5000


@dataclass(frozen=True)
class ContactFields:
    """Sanitized contact values ready for validation."""

    name: str
    email: str
    subject: str
    message: str


def check_honeypot(value: Any) -> bool:
    """Return True when the honeypot field is empty (a human submission)."""
    if value is None:
        return True
    return str(value) == ""


def validate_length(value: str, min_length: int, max_length: int) -> bool:
    return min_length <= len(value) <= max_length


def is_valid_email(value: str) -> bool:
    """Syntax check only; deliverability (DNS) is never queried."""
    try:
        validate_email(value, check_deliverability=False)
    except EmailNotValidError:
        return False
    return True


def validate_email_field(value: str) -> list[str]:
    if not value:
        return ["Email is required"]
    if not is_valid_email(value):
        return ["Invalid email address"]
    return []


def validate_contact(fields: ContactFields, rules: ContactRules) -> list[str]:
    """Collect every contact form violation (name, email, subject, message)."""
    violations: list[str] = []

    if not fields.name:
        violations.append("Name is required")
    elif not validate_length(fields.name, rules.min_name_length, rules.max_name_length):
        violations.append(
            f"Name must be between {rules.min_name_length} and {rules.max_name_length} characters"
        )

    violations.extend(validate_email_field(fields.email))

    if not fields.subject:
        violations.append("Subject is required")

    if not fields.message:
        violations.append("Message is required")
    elif not validate_length(fields.message, rules.min_message_length, rules.max_message_length):
        violations.append(
            f"Message must be between {rules.min_message_length} and "
            f"{rules.max_message_length} characters"
        )

    return violations


def validate_required(payload: Mapping[str, Any], fields: Sequence[str]) -> list[str]:
    """Report the first missing or blank field as ``"<Field> is required"``."""
    for field in fields:
        value = payload.get(field)
        if value is None or (isinstance(value, str) and not value.strip()):
            return [f"{field.replace('_', ' ').capitalize()} is required"]
    return []
