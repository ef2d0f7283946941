"""Pytest fixtures for backend tests."""

from __future__ import annotations

import os

import pytest
from fastapi.testclient import TestClient


def _set_default_env() -> None:
    os.environ.setdefault("SUPABASE_URL", "https://example.supabase.co")
    os.environ.setdefault("SUPABASE_SERVICE_KEY", "service-key")
    os.environ.setdefault("SESSION_SECRET", "test-session-secret")
    os.environ.setdefault("ENABLE_SCHEDULER", "false")
    os.environ.setdefault("BCRYPT_ROUNDS", "4")
    os.environ.setdefault("OTP_BCRYPT_ROUNDS", "4")


_set_default_env()

from app.utils.security import ROLE_ADMIN  # noqa: E402
from fakes import FakeSupabase, RecordingMailer, Records  # noqa: E402


@pytest.fixture
def db() -> FakeSupabase:
    """Empty in-memory database."""
    return FakeSupabase()


@pytest.fixture
def records(db: FakeSupabase) -> Records:
    """Row builders bound to the test database."""
    return Records(db)


@pytest.fixture
def mailer() -> RecordingMailer:
    """Mailer that records outgoing messages."""
    return RecordingMailer()


@pytest.fixture
def client(db: FakeSupabase, mailer: RecordingMailer):
    """Create a FastAPI test client wired to the fake database and mailer."""
    from app.dependencies import get_db_client
    from app.main import app
    from app.services.mail_service import get_mailer

    app.dependency_overrides[get_db_client] = lambda: db
    app.dependency_overrides[get_mailer] = lambda: mailer
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def admin_client(client: TestClient, records: Records) -> TestClient:
    """Test client carrying a signed-in admin's session cookie."""
    from app.config import settings
    from app.utils.security import create_session_token

    admin = records.admin()
    token = create_session_token(admin["id"], ROLE_ADMIN, settings.admin_session_ttl_minutes)
    client.cookies.set(settings.admin_session_cookie, token)
    return client
