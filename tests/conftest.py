"""
Pytest configuration and fixtures for the test suite.

Each test gets its own application bound to a fresh SQLite database file, so
ids always start at 1 and no state leaks between tests.
"""

import dataclasses

import pytest
from fastapi.testclient import TestClient

from todo_api.main import create_app
from todo_api.settings import get_settings


@pytest.fixture
def settings(tmp_path, monkeypatch):
    monkeypatch.delenv("DATABASE_URL", raising=False)
    return dataclasses.replace(
        get_settings(),
        database_url=f"sqlite:///{tmp_path / 'todos.db'}",
    )


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def client(app):
    """FastAPI test client; entering it runs the lifespan, which creates the schema."""
    with TestClient(app) as c:
        yield c


@pytest.fixture
def make_todo(client):
    def _make(title="Test Task"):
        res = client.post("/api/todos", json={"title": title})
        assert res.status_code == 201, res.text
        return res.json()

    return _make
