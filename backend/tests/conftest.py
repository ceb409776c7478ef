import os
import tempfile
from pathlib import Path

import pytest

_TMP = Path(tempfile.mkdtemp(prefix="eventvote-tests-"))

# Must be set before eventvote is imported: settings and loggers are read once.
os.environ["DATABASE_URL"] = f"sqlite:///{_TMP / 'test.sqlite3'}"
os.environ["ADMIN_PASSWORD"] = "test-admin-secret"
os.environ["LOG_FILE"] = str(_TMP / "eventvote.log")
os.environ.pop("PII_KEY", None)
os.environ.pop("ALLOWED_ORIGINS", None)

from fastapi.testclient import TestClient  # noqa: E402

from eventvote.db import Base, get_engine, get_sessionmaker, init_db  # noqa: E402
from eventvote.main import app  # noqa: E402

ADMIN_PASSWORD = "test-admin-secret"

HOST_SECTION = {
    "id": "host",
    "label": "Host",
    "type": "single-select",
    "required": True,
    "options": [{"name": "A", "imageUrl": "https://img.example/a.png"}, {"name": "B"}],
}
SINGERS_SECTION = {
    "id": "singers",
    "label": "Singers",
    "type": "multi-select",
    "required": True,
    "options": [{"name": "S1"}, {"name": "S2"}, {"name": "S3"}],
    "minSelections": 1,
    "maxSelections": 2,
}
COMMENT_SECTION = {"id": "comment", "label": "Comment", "type": "text-input", "required": False}


def _reset_limits() -> None:
    limiter = getattr(app.state, "limiter", None)
    if limiter is not None:
        limiter.reset()


@pytest.fixture(autouse=True)
def fresh_state():
    engine = get_engine()
    if engine.url.drivername != "sqlite":
        raise RuntimeError("Test database must be SQLite; refusing to drop tables.")
    Base.metadata.drop_all(bind=engine)
    init_db()
    app.state.token_store.clear()
    _reset_limits()
    yield
    _reset_limits()


@pytest.fixture()
def client():
    return TestClient(app)


@pytest.fixture()
def db_session():
    session = get_sessionmaker()()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def admin_headers(client):
    response = client.post("/api/admin/login", json={"password": ADMIN_PASSWORD})
    assert response.status_code == 200
    return {"Authorization": f"Bearer {response.json()['token']}"}


@pytest.fixture()
def company(client, admin_headers):
    response = client.post("/api/admin/create-company", json={"name": "Acme"}, headers=admin_headers)
    assert response.status_code == 200
    return response.json()["company"]


@pytest.fixture()
def voting_session(client, admin_headers):
    response = client.post(
        "/api/admin/create-voting",
        json={
            "title": "NYE Party",
            "date": "2025-12-31",
            "sections": [HOST_SECTION, SINGERS_SECTION, COMMENT_SECTION],
        },
        headers=admin_headers,
    )
    assert response.status_code == 200
    return response.json()["voting"]
