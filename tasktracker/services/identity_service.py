"""Identity resolution for Google OAuth and local credentials.

One email maps to one user. Google sign-in and local passwords are two
credential methods on the same record: a Google login for an email that
already has a local account links to it, and a local signup for an email
that only has Google sign-in upgrades that record in place.
"""

import logging
from enum import StrEnum
from typing import Any, NamedTuple

from tasktracker.core import db_client
from tasktracker.core.errors import (
    AlreadyHasPasswordError,
    EmailTakenError,
    NotFoundError,
    UsernameTakenError,
)
from tasktracker.core.logging import span
from tasktracker.domain.create_models import UserCreate
from tasktracker.domain.update_models import UserCredentialsUpdate, UserGoogleLink
from tasktracker.domain.user import GoogleProfile
from tasktracker.services import password_service, user_service


logger = logging.getLogger(__name__)


class OAuthOutcome(StrEnum):
    """How a Google assertion was matched to a user."""

    EXISTING = "existing"
    LINKED = "linked"
    CREATED = "created"


class LocalAuthFailure(StrEnum):
    """Why a local login was refused."""

    INVALID_CREDENTIALS = "InvalidCredentials"
    OAUTH_ONLY_ACCOUNT = "OAuthOnlyAccount"


class OAuthResolution(NamedTuple):
    """Result of resolving a Google assertion."""

    user: dict[str, Any]
    outcome: OAuthOutcome


class LocalAuthResult(NamedTuple):
    """Result of a local login attempt: either a user or a failure kind."""

    user: dict[str, Any] | None
    failure: LocalAuthFailure | None

    @property
    def ok(self) -> bool:
        return self.failure is None


class SignupResult(NamedTuple):
    """Result of a signup; ``upgraded`` is True when an OAuth-only account gained a password."""

    user: dict[str, Any]
    upgraded: bool


async def resolve_oauth_user(profile: GoogleProfile) -> OAuthResolution:
    """Resolve a Google assertion to exactly one user, linking or creating as needed.

    Lookup order: Google ID first (stable, provider-verified), then email as
    the merge key, then create.

    Raises:
        db_client.DatabaseError: If database operation fails
    """
    with span("identity_service.resolve_oauth_user"):
        user = await user_service.get_user_by_google_id(google_id=profile.google_id)
        if user:
            logger.info("Existing OAuth login: %s", user["email"], extra={"user_id": user["id"]})
            return OAuthResolution(user=user, outcome=OAuthOutcome.EXISTING)

        user = await user_service.get_user_by_email(email=profile.email)
        if user:
            link = UserGoogleLink(google_id=profile.google_id, picture=user.get("picture") or profile.picture)
            updated = await db_client.update_record(
                collection="users",
                record_id=user["id"],
                data=link.model_dump(),
            )
            logger.info("Linked Google account to existing user: %s", updated["email"], extra={"user_id": updated["id"]})
            return OAuthResolution(user=updated, outcome=OAuthOutcome.LINKED)

        user_create = UserCreate(
            email=user_service.normalize_email(profile.email),
            name=profile.name or profile.email,
            google_id=profile.google_id,
            picture=profile.picture,
        )
        created = await db_client.create_record(collection="users", data=user_create.model_dump(exclude_none=True))
        logger.info("New OAuth user created: %s", created["email"], extra={"user_id": created["id"]})
        return OAuthResolution(user=created, outcome=OAuthOutcome.CREATED)


async def authenticate_local(*, email_or_username: str, password: str) -> LocalAuthResult:
    """Check local credentials.

    Unknown account and wrong password both report INVALID_CREDENTIALS so the
    caller cannot tell which one failed.
    """
    with span("identity_service.authenticate_local"):
        user = await user_service.get_user_by_email_or_username(identifier=email_or_username)
        if not user:
            logger.warning("Local login failed: unknown account")
            return LocalAuthResult(user=None, failure=LocalAuthFailure.INVALID_CREDENTIALS)

        if not user.get("password_hash"):
            logger.warning("Local login refused for OAuth-only account", extra={"user_id": user["id"]})
            return LocalAuthResult(user=None, failure=LocalAuthFailure.OAUTH_ONLY_ACCOUNT)

        if not password_service.verify_password(password, user["password_hash"]):
            logger.warning("Local login failed: wrong password", extra={"user_id": user["id"]})
            return LocalAuthResult(user=None, failure=LocalAuthFailure.INVALID_CREDENTIALS)

        logger.info("Local login: %s", user["email"], extra={"user_id": user["id"]})
        return LocalAuthResult(user=user, failure=None)


async def signup(*, email: str, username: str, password: str, name: str) -> SignupResult:
    """Create a local account, or add a password to an OAuth-only account with the same email.

    Raises:
        EmailTakenError: If a password-bearing account already owns the email
        UsernameTakenError: If a different account holds the username
        db_client.DatabaseError: If database operation fails
    """
    with span("identity_service.signup"):
        existing = await user_service.get_user_by_email(email=email)

        if existing and existing.get("password_hash"):
            logger.warning("Signup rejected: email already registered", extra={"user_id": existing["id"]})
            raise EmailTakenError("An account with this email already exists")

        exclude_id = existing["id"] if existing else None
        if await user_service.is_username_taken(username=username, exclude_user_id=exclude_id):
            logger.warning("Signup rejected: username taken", extra={"username": username})
            raise UsernameTakenError()

        password_hash = password_service.hash_password(password)

        # Guard: OAuth-only account for this email gets upgraded in place
        if existing:
            credentials = UserCredentialsUpdate(
                username=username,
                password_hash=password_hash,
                name=existing.get("name") or name.strip(),
            )
            updated = await db_client.update_record(
                collection="users",
                record_id=existing["id"],
                data=credentials.model_dump(exclude_none=True),
            )
            logger.info("Password added to OAuth account: %s", updated["email"], extra={"user_id": updated["id"]})
            return SignupResult(user=updated, upgraded=True)

        user_create = UserCreate(
            email=user_service.normalize_email(email),
            username=username,
            name=name.strip(),
            password_hash=password_hash,
        )
        created = await db_client.create_record(collection="users", data=user_create.model_dump(exclude_none=True))
        logger.info("New local user created: %s", created["email"], extra={"user_id": created["id"]})
        return SignupResult(user=created, upgraded=False)


async def set_password(*, user_id: str, username: str, password: str) -> dict[str, Any]:
    """Give an authenticated OAuth-only user a username and password.

    Raises:
        NotFoundError: If the user no longer exists
        AlreadyHasPasswordError: If the user already has a password
        UsernameTakenError: If another account holds the username
    """
    with span("identity_service.set_password"):
        user = await user_service.get_user_by_id(user_id=user_id)
        if not user:
            raise NotFoundError("User not found")

        if user.get("password_hash"):
            raise AlreadyHasPasswordError()

        if await user_service.is_username_taken(username=username, exclude_user_id=user["id"]):
            raise UsernameTakenError()

        credentials = UserCredentialsUpdate(
            username=username,
            password_hash=password_service.hash_password(password),
        )
        updated = await db_client.update_record(
            collection="users",
            record_id=user["id"],
            data=credentials.model_dump(exclude_none=True),
        )
        logger.info("Password set for user: %s", updated["email"], extra={"user_id": updated["id"]})
        return updated
