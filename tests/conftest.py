"""Pytest configuration and shared fixtures."""

import time

import pytest

from tasktracker.core.config import settings
from tasktracker.services.token_service import TokenCodec


TEST_SECRET_KEY = "test-secret-key-for-signing-tokens"  # noqa: S105
TEST_BCRYPT_ROUNDS = 4


@pytest.fixture(autouse=True)
def test_settings(monkeypatch):
    """Deterministic settings for every test: fixed secret, cheap bcrypt, no Google, no Logfire."""
    monkeypatch.setattr(settings, "secret_key", TEST_SECRET_KEY)
    monkeypatch.setattr(settings, "bcrypt_rounds", TEST_BCRYPT_ROUNDS)
    monkeypatch.setattr(settings, "token_ttl_hours", 24)
    monkeypatch.setattr(settings, "google_client_id", None)
    monkeypatch.setattr(settings, "google_client_secret", None)
    monkeypatch.setattr(settings, "logfire_token", None)
    monkeypatch.setattr(settings, "environment", "test")
    monkeypatch.setattr(settings, "client_url", "http://localhost:3000")
    return settings


@pytest.fixture
def token_codec() -> TokenCodec:
    """Codec sharing the test secret with the app's dependency."""
    return TokenCodec(secret_key=TEST_SECRET_KEY, ttl_seconds=24 * 3600)


@pytest.fixture
def expired_token_codec() -> TokenCodec:
    """Codec whose clock is 25 hours in the past, so anything it issues has already expired."""
    return TokenCodec(
        secret_key=TEST_SECRET_KEY,
        ttl_seconds=24 * 3600,
        clock=lambda: time.time() - 25 * 3600,
    )
