"""Response envelope and auth payload schemas."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class Envelope(BaseModel):
    """Uniform success wrapper returned by every endpoint."""

    success: bool = True
    data: Any = None
    message: str | None = None

    def dump(self) -> dict[str, Any]:
        """JSON body with ``data``/``message`` omitted when unset.

        ``data`` is passed through as-is, so null values inside records
        (e.g. ``liveUrl``) are kept.
        """
        content: dict[str, Any] = {"success": self.success}
        if self.data is not None:
            content["data"] = self.data
        if self.message is not None:
            content["message"] = self.message
        return content


class LoginRequest(BaseModel):
    """Body of ``POST /auth?action=login``."""

    username: str = ""
    password: str = ""


class AuthStatus(BaseModel):
    authenticated: bool
    username: str | None = Field(default=None)
