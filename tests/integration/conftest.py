"""Pytest configuration and fixtures for integration tests.

The real app runs inside its lifespan against a temporary SQLite file.
"""

from collections.abc import Callable, Generator
from typing import Any

import pytest
from fastapi.testclient import TestClient

from tasktracker.main import app


@pytest.fixture
def client(monkeypatch, tmp_path, test_settings) -> Generator[TestClient, None, None]:
    """TestClient with the lifespan running, so the schema exists and one event loop is reused."""
    monkeypatch.setattr(test_settings, "sqlite_db_path", str(tmp_path / "integration.db"))
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def signup(client) -> Callable[..., dict[str, Any]]:
    """Sign up a local user and return the response body."""

    def _signup(email: str = "a@x.com", username: str = "alice", password: str = "secret123", name: str = "Alice"):
        response = client.post(
            "/auth/signup",
            json={"email": email, "username": username, "password": password, "name": name},
        )
        assert response.status_code in (200, 201), response.text
        return response.json()

    return _signup


def auth_headers(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def alice(signup) -> dict[str, Any]:
    body = signup()
    return {"token": body["token"], "user": body["user"], "headers": auth_headers(body["token"])}


@pytest.fixture
def bob(signup) -> dict[str, Any]:
    body = signup(email="b@x.com", username="bob", name="Bob")
    return {"token": body["token"], "user": body["user"], "headers": auth_headers(body["token"])}
