"""Authentication endpoints: Google OAuth, local signup/login and session info."""

import logging
from typing import Any
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import JSONResponse, RedirectResponse

from tasktracker.core import db_client
from tasktracker.core.config import settings
from tasktracker.core.errors import (
    InvalidCredentialsError,
    InvalidInputError,
    OAuthOnlyAccountError,
    ServerError,
)
from tasktracker.domain.auth_models import LoginRequest, SetPasswordRequest, SignupRequest
from tasktracker.domain.user import User
from tasktracker.interface import google_oauth
from tasktracker.interface.auth_gate import optional_user, require_user
from tasktracker.services import identity_service
from tasktracker.services.identity_service import LocalAuthFailure
from tasktracker.services.token_service import TokenCodec, get_token_codec


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


def _frontend_redirect(path: str, **params: str) -> RedirectResponse:
    url = f"{settings.client_url.rstrip('/')}{path}"
    if params:
        url = f"{url}?{urlencode(params)}"
    return RedirectResponse(url=url, status_code=status.HTTP_302_FOUND)


def _ensure_valid(errors: list[str]) -> None:
    if errors:
        raise InvalidInputError("Validation failed", errors=errors)


@router.get("/google")
async def google_login() -> RedirectResponse:
    """Send the browser to Google's consent screen."""
    if not settings.google_oauth_enabled:
        logger.warning("google_oauth_not_configured")
        return _frontend_redirect("/login", error="auth_failed")

    state = google_oauth.create_state()
    return RedirectResponse(url=google_oauth.build_authorization_url(state), status_code=status.HTTP_302_FOUND)


@router.get("/google/callback")
async def google_callback(
    code: str | None = Query(default=None),
    state: str | None = Query(default=None),
    error: str | None = Query(default=None),
    codec: TokenCodec = Depends(get_token_codec),
) -> RedirectResponse:
    """Finish the OAuth round trip and hand a token to the frontend."""
    if error or not code:
        logger.warning("google_oauth_denied", extra={"error": error or "missing_code"})
        return _frontend_redirect("/login", error="auth_failed")

    if not google_oauth.verify_state(state):
        logger.warning("google_oauth_invalid_state")
        return _frontend_redirect("/login", error="auth_failed")

    try:
        profile = await google_oauth.fetch_google_profile(code)
        resolution = await identity_service.resolve_oauth_user(profile)
    except (google_oauth.OAuthError, db_client.DatabaseError) as e:
        logger.error("google_oauth_failed", extra={"error": str(e)})
        return _frontend_redirect("/login", error="auth_failed")

    try:
        token = codec.issue(resolution.user)
    except (KeyError, TypeError, ValueError) as e:
        logger.error("token_generation_failed", extra={"user_id": resolution.user.get("id"), "error": str(e)})
        return _frontend_redirect("/login", error="token_generation_failed")

    logger.info(
        "google_oauth_success",
        extra={"user_id": resolution.user["id"], "outcome": str(resolution.outcome)},
    )
    return _frontend_redirect("/auth/success", token=token)


@router.post("/signup")
async def signup(payload: SignupRequest, codec: TokenCodec = Depends(get_token_codec)) -> JSONResponse:
    """Create a local account, or add a password to an existing Google account."""
    _ensure_valid(payload.validation_errors())

    try:
        result = await identity_service.signup(
            email=payload.email or "",
            username=payload.username or "",
            password=payload.password or "",
            name=payload.name or "",
        )
    except db_client.DatabaseError as e:
        logger.error("signup_failed", extra={"error": str(e)})
        raise ServerError("Failed to create account") from e

    if result.upgraded:
        message = "Password added to your account. You can now sign in with email or username."
        status_code = status.HTTP_200_OK
    else:
        message = "Account created successfully"
        status_code = status.HTTP_201_CREATED

    return JSONResponse(
        status_code=status_code,
        content={
            "success": True,
            "message": message,
            "token": codec.issue(result.user),
            "user": User.from_record(result.user).to_json(),
        },
    )


@router.post("/login")
async def login(payload: LoginRequest, codec: TokenCodec = Depends(get_token_codec)) -> dict[str, Any]:
    """Sign in with email or username and password."""
    _ensure_valid(payload.validation_errors())

    try:
        result = await identity_service.authenticate_local(
            email_or_username=payload.email_or_username or "",
            password=payload.password or "",
        )
    except db_client.DatabaseError as e:
        logger.error("login_failed", extra={"error": str(e)})
        raise ServerError("Failed to sign in") from e

    if result.failure == LocalAuthFailure.OAUTH_ONLY_ACCOUNT:
        raise OAuthOnlyAccountError()
    if not result.ok or result.user is None:
        raise InvalidCredentialsError()

    return {
        "success": True,
        "message": "Login successful",
        "token": codec.issue(result.user),
        "user": User.from_record(result.user).to_json(),
    }


@router.post("/set-password")
async def set_password(
    payload: SetPasswordRequest,
    user: dict[str, Any] = Depends(require_user),
) -> dict[str, Any]:
    """Add a username and password to the signed-in Google account."""
    _ensure_valid(payload.validation_errors())

    try:
        updated = await identity_service.set_password(
            user_id=user["id"],
            username=payload.username or "",
            password=payload.password or "",
        )
    except db_client.DatabaseError as e:
        logger.error("set_password_failed", extra={"user_id": user["id"], "error": str(e)})
        raise ServerError("Failed to set password") from e

    return {
        "success": True,
        "message": "Password set successfully",
        "user": User.from_record(updated).to_json(),
    }


@router.get("/me")
async def me(user: dict[str, Any] = Depends(require_user)) -> dict[str, Any]:
    """Current user's public profile."""
    return {"success": True, "user": User.from_record(user).to_json()}


@router.get("/logout")
async def logout(user: dict[str, Any] | None = Depends(optional_user)) -> dict[str, Any]:
    """Tokens are stateless, so logging out only tells the client to discard its token."""
    if user:
        logger.info("logout", extra={"user_id": user["id"]})
    return {
        "success": True,
        "message": "Logged out successfully. Please remove the token from client storage.",
    }
