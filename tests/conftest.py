import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET"] = "test-secret-0123456789"
os.environ["ARGON2_TIME_COST"] = "1"
os.environ["ARGON2_MEMORY_COST"] = "1024"
os.environ["ADMIN_EMAILS"] = '["admin@example.com"]'
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["LOG_FORMAT"] = "console"

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from notesai.config import get_settings  # noqa: E402
from notesai.database import Base, engine  # noqa: E402
from notesai.main import app  # noqa: E402
from notesai.routes.bug_reports import limiter  # noqa: E402

PASSWORD = "password123"  # noqa: S105


@pytest.fixture(autouse=True)
def fresh_state():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    limiter.reset()
    yield
    app.dependency_overrides.clear()


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def signup(client):
    """Register a user and return ``(headers, user_json)``."""

    def _signup(email="u1@example.com", name="Alex Johnson", password=PASSWORD):
        r = client.post(
            "/api/auth/register",
            json={"email": email, "password": password, "name": name},
        )
        assert r.status_code == 201, r.text
        body = r.json()
        return {"Authorization": f"Bearer {body['token']}"}, body["user"]

    return _signup


@pytest.fixture
def reload_settings(monkeypatch):
    def _apply(**env):
        for key, value in env.items():
            if value is None:
                monkeypatch.delenv(key, raising=False)
            else:
                monkeypatch.setenv(key, value)
        get_settings.cache_clear()

    yield _apply
    get_settings.cache_clear()
