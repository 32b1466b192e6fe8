"""Tests for global exception handlers.

Validates that every failure reaches the client in the same envelope with
the right HTTP status, and that nothing internal leaks.
"""

import asyncio
import json
from unittest.mock import AsyncMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from pydantic import BaseModel

from portfolio_api.core.errors import (
    AppError,
    AuthenticationAppError,
    MethodNotAllowedAppError,
    NotFoundAppError,
    RateLimitAppError,
    SendAppError,
    ValidationAppError,
)
from portfolio_api.core.exception_handlers import general_exception_handler, setup_exception_handlers


class Payload(BaseModel):
    count: int


@pytest.fixture
def app_with_handlers() -> FastAPI:
    """FastAPI app with handlers and one route per error type."""
    app = FastAPI()
    setup_exception_handlers(app)

    errors = {
        "validation": ValidationAppError.from_violations(["Name is required", "Message is required"]),
        "auth": AuthenticationAppError(code="unauthorized", message="Unauthorized. Please login."),
        "missing": NotFoundAppError(code="project_not_found", message="Project not found"),
        "verb": MethodNotAllowedAppError(code="method_not_allowed", message="Invalid request method"),
        "send": SendAppError(code="mail_send_failed", message="Failed to send email."),
        "limited": RateLimitAppError(
            code="rate_limited",
            message="Too many requests",
            details={"limit": 5, "remaining": 0, "reset_at": 1_700_003_600, "retry_after": 3600},
        ),
    }

    @app.get("/raise/{name}")
    async def raise_error(name: str):
        raise errors[name]

    @app.get("/boom")
    async def boom():
        raise RuntimeError("database connection failed at 10.0.0.5")

    @app.post("/payload")
    async def payload(body: Payload):
        return {"count": body.count}

    return app


@pytest.fixture
def client(app_with_handlers: FastAPI) -> TestClient:
    return TestClient(app_with_handlers, raise_server_exceptions=False)


class TestAppErrorHandler:
    """Handler for AppError and subclasses."""

    @pytest.mark.parametrize(
        ("name", "status", "code"),
        [
            ("validation", 400, "validation_failed"),
            ("auth", 401, "unauthorized"),
            ("missing", 404, "project_not_found"),
            ("verb", 405, "method_not_allowed"),
            ("limited", 429, "rate_limited"),
            ("send", 500, "mail_send_failed"),
        ],
    )
    def test_status_comes_from_error_class(self, client: TestClient, name: str, status: int, code: str):
        response = client.get(f"/raise/{name}")

        assert response.status_code == status
        data = response.json()
        assert data["success"] is False
        assert data["error"]["code"] == code
        assert "request_id" in data["error"]

    def test_validation_error_lists_every_violation(self, client: TestClient):
        data = client.get("/raise/validation").json()

        assert data["error"]["message"] == "Name is required"
        assert data["error"]["details"]["violations"] == ["Name is required", "Message is required"]

    def test_details_omitted_when_empty(self, client: TestClient):
        data = client.get("/raise/auth").json()

        assert "details" not in data["error"]

    def test_rate_limit_headers(self, client: TestClient):
        response = client.get("/raise/limited")

        assert response.headers["Retry-After"] == "3600"
        assert response.headers["X-RateLimit-Limit"] == "5"
        assert response.headers["X-RateLimit-Remaining"] == "0"
        assert response.headers["X-RateLimit-Reset"] == "1700003600"

    def test_rate_limit_headers_can_be_disabled(self, make_client):
        client = make_client(app={"rate_limit_include_headers": False})
        body = {"name": "Jo", "email": "a@b.com", "message": "1234567890"}
        for _ in range(5):
            client.post("/contact", json=body)

        response = client.post("/contact", json=body)

        assert response.status_code == 429
        assert "Retry-After" not in response.headers
        assert "X-RateLimit-Limit" not in response.headers


class TestRoutingErrors:
    """Starlette and request validation errors use the same envelope."""

    def test_unknown_route_is_404_envelope(self, client: TestClient):
        response = client.get("/nowhere")

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "not_found"

    def test_unsupported_verb_is_405_envelope(self, client: TestClient):
        response = client.delete("/boom")

        assert response.status_code == 405
        assert response.json()["error"]["code"] == "method_not_allowed"

    def test_malformed_json_is_400(self, client: TestClient):
        response = client.post(
            "/payload", content=b"{oops", headers={"Content-Type": "application/json"}
        )

        assert response.status_code == 400
        data = response.json()
        assert data["error"]["code"] == "invalid_request"
        assert data["error"]["message"] == "Invalid request data"

    def test_wrong_type_names_the_field(self, client: TestClient):
        response = client.post("/payload", json={"count": "many"})

        violations = response.json()["error"]["details"]["violations"]
        assert violations[0].startswith("count:")


class TestGeneralExceptionHandler:
    """Safety net for unexpected exceptions."""

    def test_unexpected_exception_is_generic_500(self, client: TestClient):
        response = client.get("/boom")

        assert response.status_code == 500
        data = response.json()
        assert data["error"]["code"] == "internal_server_error"
        assert "10.0.0.5" not in response.text

    def test_general_exception_handler_never_leaks_stack_trace(self):
        request = AsyncMock()
        request.url.path = "/test"
        request.method = "GET"

        response = asyncio.run(general_exception_handler(request, ValueError("Test error with details")))

        response_text = bytes(response.body).decode()
        assert "Traceback" not in response_text
        assert "ValueError" not in response_text
        assert json.loads(response_text)["error"]["message"] == (
            "An unexpected error occurred. Please try again later."
        )

    def test_setup_registers_handlers(self, app_with_handlers: FastAPI):
        assert AppError in app_with_handlers.exception_handlers
        assert Exception in app_with_handlers.exception_handlers
