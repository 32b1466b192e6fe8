"""Domain errors raised by services and adapters.

Each subclass carries the HTTP status it maps to; the global handlers turn
any of them into the error envelope.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, NotRequired, TypedDict


class ErrorDetails(TypedDict, total=False):
    """Keys that may appear in ``error.details``. All optional."""

    violations: list[str]
    field: str
    hint: str
    id: int | str
    limit: int
    remaining: int
    reset_at: int
    retry_after: int
    context: NotRequired[dict[str, Any]]


@dataclass
class AppError(Exception):
    """Base class for expected failures.

    Attributes:
        code: Machine-readable code, e.g. ``already_subscribed``.
        message: Text shown to the visitor as ``error.message``.
        details: Extra context returned as ``error.details``.
        status_code: HTTP status used by the exception handler.
    """

    code: str
    message: str
    details: ErrorDetails | None = None

    status_code = 400

    def __post_init__(self) -> None:
        # str(error) is the message.
        super().__init__(self.message)


class ValidationAppError(AppError):
    """Raised when request input fails validation."""

    @classmethod
    def from_violations(cls, violations: list[str]) -> "ValidationAppError":
        """Build an error carrying every violation, first one as the message."""
        return cls(
            code="validation_failed",
            message=violations[0] if violations else "Invalid request",
            details={"violations": list(violations)},
        )


class AuthenticationAppError(AppError):
    """Raised when credentials are wrong or the admin session is missing/expired."""

    status_code = 401


class NotFoundAppError(AppError):
    """Raised when a record id does not exist."""

    status_code = 404


class MethodNotAllowedAppError(AppError):
    """Raised when a resource does not support the request verb/action."""

    status_code = 405


class RateLimitAppError(AppError):
    """Raised when a client exceeds its request budget."""

    status_code = 429


class StorageAppError(AppError):
    """Raised when persistence fails. The message shown to clients is generic."""

    status_code = 500


class SendAppError(AppError):
    """Raised when an outbound email could not be delivered."""

    status_code = 500
