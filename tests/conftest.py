"""Shared test fixtures -- reduces boilerplate across test modules.

Provides:
- ``set_test_config`` -- autouse fixture that patches common settings
- ``auth_header`` -- helper to generate JWT auth headers
- ``fake_db`` -- in-memory stores standing in for the asyncpg repos
- ``client`` -- TestClient whose service registry runs on ``fake_db``
"""

import uuid

import pytest
from fastapi.testclient import TestClient

from app_engine.api.rate_limit import event_limiter
from app_engine.auth import UserPrivilege, create_token
from app_engine.clients import users_client
from app_engine.main import app
from app_engine.services.registry import build_services
from tests.fakes import FakeDatabase, FakeUsersClient

PREFIX = "/app-engine"
PLUGIN_ID = "66666666-6666-6666-6666-666666666666"
MISSING_ID = "77777777-7777-7777-7777-777777777777"

# ---------------------------------------------------------------------------
# Environment patching
# ---------------------------------------------------------------------------

_SETTINGS_PATCHES: dict[str, object] = {
    "app_engine.config.settings.JWT_SECRET": "test-secret-key-for-unit-tests",
    "app_engine.config.settings.USERS_WEBHOOK_SECRET": "whsec_test",
    "app_engine.config.settings.USERS_SERVICE_URL": "http://users.test/users",
    "app_engine.config.settings.DEFAULT_MAX_PROJECTS": 5,
    "app_engine.config.settings.MAX_PAGE_LIMIT": 0,
}


def pytest_configure(config):
    """Register custom markers.

    Tests that need a real Postgres should be decorated with
    ``@pytest.mark.integration`` and run with ``-m integration``.
    """
    config.addinivalue_line(
        "markers",
        "integration: tests requiring external services (database, users service)",
    )


@pytest.fixture(autouse=True)
def set_test_config(monkeypatch):
    """Patch common application settings for a safe test environment.

    This is ``autouse=True`` so every test automatically gets a
    deterministic, non-production configuration.
    """
    monkeypatch.setenv("TESTING", "1")
    for target, value in _SETTINGS_PATCHES.items():
        monkeypatch.setattr(target, value)
    event_limiter.reset()
    users_client.clear_cache()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def auth_header(username: str = "george", privileges: int = UserPrivilege.REGULAR) -> dict:
    """Return an ``Authorization`` header dict with a valid JWT."""
    token = create_token(username, privileges, email=f"{username}@example.com")
    return {"Authorization": f"Bearer {token}"}


def admin_header(username: str = "admin") -> dict:
    return auth_header(username, UserPrivilege.ADMIN)


def new_id() -> str:
    return str(uuid.uuid4())


@pytest.fixture
def fake_db() -> FakeDatabase:
    """Empty in-memory database with details for george and jane."""
    db = FakeDatabase()
    db.add_user_details("george")
    db.add_user_details("jane")
    return db


@pytest.fixture
def users() -> FakeUsersClient:
    return FakeUsersClient("george", "jane", "admin")


@pytest.fixture
def client(monkeypatch, fake_db: FakeDatabase, users: FakeUsersClient) -> TestClient:
    """A ``TestClient`` whose services run against ``fake_db``."""
    services = build_services(
        project_store=fake_db.projects,
        build_store=fake_db.builds,
        resource_store=fake_db.resources,
        plugin_store=fake_db.plugins,
        user_details_store=fake_db.user_details,
        file_store=fake_db.files,
        users_client=users,
    )
    monkeypatch.setattr(app.state, "services", services)
    return TestClient(app, raise_server_exceptions=False)


def create_project(client: TestClient, username: str = "george", **overrides) -> dict:
    """Create a project through the API and return its JSON document."""
    payload = {"name": "Test project", "description": "", "plugins": [PLUGIN_ID], **overrides}
    response = client.post(f"{PREFIX}/projects", json=payload, headers=auth_header(username))
    body = response.json()
    assert body["error"] is False, body["message"]
    return body["data"]
