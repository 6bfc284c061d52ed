"""Tests for authentication request validation."""

import pytest

from tasktracker.domain.auth_models import LoginRequest, SetPasswordRequest, SignupRequest


USERNAME_RULE = "Username must be 3-20 characters long and contain only letters, numbers, and underscores"


@pytest.mark.unit
class TestSignupRequest:
    def test_valid_payload_has_no_errors(self):
        request = SignupRequest(email="a@x.com", username="alice_1", password="secret123", name="Alice")

        assert request.validation_errors() == []

    def test_empty_payload_reports_every_problem(self):
        errors = SignupRequest().validation_errors()

        assert errors == ["Email is required", "Username is required", "Password is required", "Name is required"]

    @pytest.mark.parametrize("email", ["plain", "a@b", "a b@x.com", "@x.com"])
    def test_invalid_email_format(self, email):
        errors = SignupRequest(email=email, username="alice", password="secret123", name="A").validation_errors()

        assert errors == ["Invalid email format"]

    @pytest.mark.parametrize("username", ["ab", "a" * 21, "has space", "dash-name"])
    def test_invalid_username(self, username):
        errors = SignupRequest(email="a@x.com", username=username, password="secret123", name="A").validation_errors()

        assert errors == [USERNAME_RULE]

    def test_short_password(self):
        errors = SignupRequest(email="a@x.com", username="alice", password="12345", name="A").validation_errors()

        assert errors == ["Password must be at least 6 characters long"]

    def test_password_over_bcrypt_limit(self):
        errors = SignupRequest(email="a@x.com", username="alice", password="x" * 73, name="A").validation_errors()

        assert errors == ["Password must be at most 72 bytes long"]

    def test_blank_name(self):
        errors = SignupRequest(email="a@x.com", username="alice", password="secret123", name="  ").validation_errors()

        assert errors == ["Name is required"]


@pytest.mark.unit
class TestLoginRequest:
    def test_accepts_camel_case_field(self):
        request = LoginRequest.model_validate({"emailOrUsername": "alice", "password": "pw"})

        assert request.email_or_username == "alice"
        assert request.validation_errors() == []

    def test_missing_fields(self):
        assert LoginRequest().validation_errors() == ["Email or username is required", "Password is required"]


@pytest.mark.unit
class TestSetPasswordRequest:
    def test_valid(self):
        assert SetPasswordRequest(username="alice", password="secret123").validation_errors() == []

    def test_missing_fields(self):
        assert SetPasswordRequest().validation_errors() == ["Username is required", "Password is required"]
