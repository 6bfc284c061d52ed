"""Tests for configuration validation."""

import pytest

from tasktracker.core.config import Constants, Settings


def test_require_credential_with_valid_value() -> None:
    """Test require_credential returns value when credential is set."""
    settings = Settings(secret_key="s3cret")

    assert settings.require_credential("secret_key", "Token signing secret") == "s3cret"


@pytest.mark.parametrize("value", [None, ""])
def test_require_credential_missing_raises_error(value) -> None:
    """Test require_credential raises ValueError naming the env var."""
    settings = Settings(secret_key=value)

    with pytest.raises(ValueError, match="Token signing secret credential not configured.*SECRET_KEY"):
        settings.require_credential("secret_key", "Token signing secret")


def test_defaults() -> None:
    settings = Settings(_env_file=None)

    assert settings.token_ttl_hours == 24
    assert settings.bcrypt_rounds == 12
    assert settings.port == 8080


def test_google_oauth_enabled_needs_both_credentials() -> None:
    assert Settings(google_client_id="id", google_client_secret="secret").google_oauth_enabled is True
    assert Settings(google_client_id="id", google_client_secret=None).google_oauth_enabled is False


@pytest.mark.parametrize(("environment", "expected"), [("production", True), ("Production", True), ("dev", False)])
def test_is_production(environment, expected) -> None:
    assert Settings(environment=environment).is_production is expected


def test_settings_read_from_environment(monkeypatch) -> None:
    monkeypatch.setenv("SECRET_KEY", "from-env")
    monkeypatch.setenv("TOKEN_TTL_HOURS", "2")

    settings = Settings(_env_file=None)

    assert settings.secret_key == "from-env"
    assert settings.token_ttl_hours == 2


def test_constants_validation_limits() -> None:
    assert Constants.PASSWORD_MIN_LENGTH == 6
    assert Constants.PASSWORD_MAX_BYTES == 72
    assert "http://localhost:3000" in Constants.DEV_ORIGINS
