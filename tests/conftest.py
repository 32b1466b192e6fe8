"""Pytest configuration and fixtures shared across all test modules.

Environment defaults are set before any project import so the global
settings never point at the real data directory or an SMTP relay.
"""

import os
import tempfile

os.environ["APP_ENV"] = "testing"
os.environ.setdefault("STORAGE_BACKEND", "file")
os.environ.setdefault("STORAGE_DATA_DIR", tempfile.mkdtemp(prefix="portfolio-tests-"))
os.environ.setdefault("MAIL_BACKEND", "log")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from pathlib import Path
from unittest.mock import Mock

import bcrypt
import pytest
from fastapi.testclient import TestClient

from portfolio_api.adapters.mail.base import AbstractMailer, MailMessage
from portfolio_api.core.app_factory import create_app
from portfolio_api.core.config import (
    AdminSettings,
    AppSettings,
    LogSettings,
    MailSettings,
    Settings,
    StorageSettings,
)
from portfolio_api.core.errors import SendAppError

ADMIN_USERNAME = "admin"
ADMIN_PASSWORD = "correct horse battery"
# Minimum bcrypt cost keeps the suite fast.
ADMIN_PASSWORD_HASH = bcrypt.hashpw(ADMIN_PASSWORD.encode(), bcrypt.gensalt(rounds=4)).decode()


class RecordingMailer(AbstractMailer):
    """Keeps sent messages in memory; ``fail=True`` simulates a relay outage."""

    def __init__(self) -> None:
        self.messages: list[MailMessage] = []
        self.fail = False

    def send(self, message: MailMessage) -> None:
        if self.fail:
            raise SendAppError(code="mail_send_failed", message="Failed to send email.")
        self.messages.append(message)


def build_settings(data_dir: Path, *, app: dict | None = None, storage: dict | None = None) -> Settings:
    storage_values = {"backend": "file", "data_dir": data_dir, "seed_demo_projects": False}
    storage_values.update(storage or {})
    return Settings(
        app_env="testing",
        app=AppSettings(**(app or {})),
        storage=StorageSettings(**storage_values),
        mail=MailSettings(backend="log", contact_email="owner@portfolio.dev"),
        admin=AdminSettings(username=ADMIN_USERNAME, password_hash=ADMIN_PASSWORD_HASH),
        log=LogSettings(level="WARNING"),
    )


@pytest.fixture
def clock() -> Mock:
    return Mock(return_value=1_700_000_000.0)


@pytest.fixture
def mailer() -> RecordingMailer:
    return RecordingMailer()


@pytest.fixture
def data_dir(tmp_path: Path) -> Path:
    path = tmp_path / "data"
    path.mkdir()
    return path


@pytest.fixture
def settings(data_dir: Path) -> Settings:
    return build_settings(data_dir)


@pytest.fixture
def app(settings: Settings, mailer: RecordingMailer, clock: Mock):
    return create_app(settings, mailer=mailer, clock=clock)


@pytest.fixture
def client(app) -> TestClient:
    return TestClient(app)


@pytest.fixture
def admin_client(client: TestClient) -> TestClient:
    """Client holding a valid admin session cookie."""
    resp = client.post(
        "/auth?action=login",
        json={"username": ADMIN_USERNAME, "password": ADMIN_PASSWORD},
    )
    assert resp.status_code == 200
    return client


@pytest.fixture
def make_client(data_dir: Path, mailer: RecordingMailer, clock: Mock):
    """Build a client for an app with ``AppSettings``/``StorageSettings`` overrides."""

    def _make(*, app: dict | None = None, storage: dict | None = None) -> TestClient:
        settings = build_settings(data_dir, app=app, storage=storage)
        return TestClient(create_app(settings, mailer=mailer, clock=clock))

    return _make
