"""Pytest configuration and fixtures for unit tests."""

import pytest

from tasktracker.domain.user import GoogleProfile
from tests.unit.mocks import InMemoryDBClient


@pytest.fixture
def in_memory_db():
    """Provides a fresh InMemoryDBClient for each test."""
    return InMemoryDBClient()


@pytest.fixture
def patched_db(monkeypatch, in_memory_db):
    """Patches tasktracker.core.db_client functions to use InMemoryDBClient."""
    monkeypatch.setattr("tasktracker.core.db_client.create_record", in_memory_db.create_record)
    monkeypatch.setattr("tasktracker.core.db_client.get_record", in_memory_db.get_record)
    monkeypatch.setattr("tasktracker.core.db_client.update_record", in_memory_db.update_record)
    monkeypatch.setattr("tasktracker.core.db_client.delete_record", in_memory_db.delete_record)
    monkeypatch.setattr("tasktracker.core.db_client.list_records", in_memory_db.list_records)
    monkeypatch.setattr("tasktracker.core.db_client.get_first_record", in_memory_db.get_first_record)

    return in_memory_db


@pytest.fixture
def google_profile():
    """Returns a sample Google identity assertion."""
    return GoogleProfile(
        google_id="google-sub-123",
        email="Alice@Example.com",
        name="Alice Google",
        picture="https://example.com/alice.png",
    )


@pytest.fixture
def sample_signup_data():
    """Returns sample local signup data."""
    return {
        "email": "alice@example.com",
        "username": "alice",
        "password": "secret123",
        "name": "Alice",
    }
