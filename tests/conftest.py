# tests/conftest.py

from __future__ import annotations

import os
import tempfile

# Point the app at a throwaway database and log dir before it is imported.
_TMP = tempfile.mkdtemp(prefix="getcash-tests-")
os.environ["GETCASH_DATABASE_URL"] = f"sqlite:///{os.path.join(_TMP, 'test.db')}"
os.environ["LOG_DIR"] = os.path.join(_TMP, "logs")

import pytest
from fastapi.testclient import TestClient

from getcash import models
from getcash.core.config import settings
from getcash.database import SessionLocal, engine, get_redis
from getcash.main import app

from .fakes import FakeRedis


@pytest.fixture()
def fake_redis() -> FakeRedis:
    return FakeRedis()


@pytest.fixture()
def client(fake_redis: FakeRedis):
    """
    API client on a freshly created schema.

    Startup runs inside the context manager, so the admin account and the
    starter tasks are seeded for every test.
    """
    models.Base.metadata.drop_all(bind=engine)
    models.Base.metadata.create_all(bind=engine)
    app.dependency_overrides[get_redis] = lambda: fake_redis
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture()
def db(client):
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


def auth_headers(client: TestClient, username: str, password: str = "secret123", phone: str = "0700123456") -> dict:
    """Register (if needed) and log in; returns the bearer header."""
    client.post("/api/register", json={"username": username, "password": password, "phone": phone})
    res = client.post("/api/login", json={"username": username, "password": password})
    assert res.status_code == 200, res.text
    return {"Authorization": f"Bearer {res.json()['token']}"}


@pytest.fixture()
def user_headers(client) -> dict:
    return auth_headers(client, "alice")


@pytest.fixture()
def admin_headers(client) -> dict:
    res = client.post("/api/login", json={"username": settings.ADMIN_USERNAME, "password": settings.ADMIN_PASSWORD})
    assert res.status_code == 200, res.text
    return {"Authorization": f"Bearer {res.json()['token']}"}


@pytest.fixture()
def task_id(client, admin_headers) -> int:
    res = client.post("/api/tasks", json={"title": "Rate our app", "price": 500, "category": "survey"}, headers=admin_headers)
    assert res.status_code == 200, res.text
    return res.json()["task"]["id"]
