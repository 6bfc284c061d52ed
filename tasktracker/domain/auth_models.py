"""Request bodies for the authentication endpoints."""

import re

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from tasktracker.core.config import constants


def _validate_email(email: str | None, errors: list[str]) -> None:
    if not email:
        errors.append("Email is required")
    elif not re.match(constants.EMAIL_PATTERN, email.strip()):
        errors.append("Invalid email format")


def _validate_username(username: str | None, errors: list[str]) -> None:
    if not username:
        errors.append("Username is required")
    elif not re.match(constants.USERNAME_PATTERN, username):
        errors.append("Username must be 3-20 characters long and contain only letters, numbers, and underscores")


def _validate_password(password: str | None, errors: list[str]) -> None:
    if not password:
        errors.append("Password is required")
    elif len(password) < constants.PASSWORD_MIN_LENGTH:
        errors.append(f"Password must be at least {constants.PASSWORD_MIN_LENGTH} characters long")
    elif len(password.encode("utf-8")) > constants.PASSWORD_MAX_BYTES:
        errors.append(f"Password must be at most {constants.PASSWORD_MAX_BYTES} bytes long")


class SignupRequest(BaseModel):
    """Local signup payload."""

    email: str | None = None
    username: str | None = None
    password: str | None = None
    name: str | None = None

    def validation_errors(self) -> list[str]:
        """Collect every problem with the payload."""
        errors: list[str] = []
        _validate_email(self.email, errors)
        _validate_username(self.username, errors)
        _validate_password(self.password, errors)
        if not self.name or not self.name.strip():
            errors.append("Name is required")
        return errors


class LoginRequest(BaseModel):
    """Local login payload."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    email_or_username: str | None = None
    password: str | None = None

    def validation_errors(self) -> list[str]:
        """Collect every problem with the payload."""
        errors: list[str] = []
        if not self.email_or_username or not self.email_or_username.strip():
            errors.append("Email or username is required")
        if not self.password:
            errors.append("Password is required")
        return errors


class SetPasswordRequest(BaseModel):
    """Payload for adding local credentials to an OAuth-only account."""

    username: str | None = None
    password: str | None = None

    def validation_errors(self) -> list[str]:
        """Collect every problem with the payload."""
        errors: list[str] = []
        _validate_username(self.username, errors)
        _validate_password(self.password, errors)
        return errors
