"""Google OAuth 2.0 authorization-code client."""

import logging
from urllib.parse import urlencode

import httpx
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer

from tasktracker.core.config import constants, settings
from tasktracker.domain.user import GoogleProfile


logger = logging.getLogger(__name__)

STATE_SALT = "oauth-state"


class OAuthError(Exception):
    """Google round trip failed or returned an unusable assertion."""


def _state_serializer() -> URLSafeTimedSerializer:
    secret_key = settings.require_credential("secret_key", "Token signing secret")
    return URLSafeTimedSerializer(secret_key, salt=STATE_SALT)


def create_state() -> str:
    """Signed, timestamped ``state`` value protecting the callback from forged requests."""
    return _state_serializer().dumps({"provider": "google"})


def verify_state(state: str | None) -> bool:
    """Check a ``state`` value returned by Google."""
    if not state:
        return False
    try:
        data = _state_serializer().loads(state, max_age=constants.OAUTH_STATE_MAX_AGE_SECONDS)
    except (BadSignature, SignatureExpired):
        return False
    return isinstance(data, dict) and data.get("provider") == "google"


def build_authorization_url(state: str) -> str:
    """URL of Google's consent screen for this application.

    Raises:
        ValueError: If Google OAuth credentials are not configured
    """
    client_id = settings.require_credential("google_client_id", "Google OAuth")
    params = {
        "client_id": client_id,
        "redirect_uri": settings.google_callback_url,
        "response_type": "code",
        "scope": constants.GOOGLE_SCOPES,
        "state": state,
        "prompt": "select_account",
    }
    return f"{constants.GOOGLE_AUTH_URL}?{urlencode(params)}"


def _profile_from_userinfo(userinfo: dict) -> GoogleProfile:
    google_id = userinfo.get("sub")
    email = userinfo.get("email")
    if not google_id or not email:
        raise OAuthError("Google profile is missing subject or email")
    if userinfo.get("email_verified") is False:
        raise OAuthError("Google email address is not verified")

    return GoogleProfile(
        google_id=str(google_id),
        email=email,
        name=userinfo.get("name") or email,
        picture=userinfo.get("picture"),
    )


async def fetch_google_profile(code: str) -> GoogleProfile:
    """Exchange an authorization code for the user's Google profile.

    Args:
        code: Authorization code from the callback query string

    Returns:
        The identity assertion

    Raises:
        OAuthError: If the token exchange or userinfo request fails
    """
    client_id = settings.require_credential("google_client_id", "Google OAuth")
    client_secret = settings.require_credential("google_client_secret", "Google OAuth")

    try:
        async with httpx.AsyncClient(timeout=constants.API_TIMEOUT_SECONDS) as client:
            token_response = await client.post(
                constants.GOOGLE_TOKEN_URL,
                data={
                    "client_id": client_id,
                    "client_secret": client_secret,
                    "code": code,
                    "grant_type": "authorization_code",
                    "redirect_uri": settings.google_callback_url,
                },
                headers={"Accept": "application/json"},
            )
            token_response.raise_for_status()
            access_token = token_response.json().get("access_token")
            if not access_token:
                raise OAuthError("Google token response did not include an access token")

            userinfo_response = await client.get(
                constants.GOOGLE_USERINFO_URL,
                headers={"Authorization": f"Bearer {access_token}"},
            )
            userinfo_response.raise_for_status()
            userinfo = userinfo_response.json()
    except httpx.HTTPStatusError as e:
        logger.error(
            "google_oauth_http_error",
            extra={"status_code": e.response.status_code, "url": str(e.request.url)},
        )
        raise OAuthError(f"Google returned status {e.response.status_code}") from e
    except (httpx.HTTPError, ValueError) as e:
        logger.error("google_oauth_request_failed", extra={"error": str(e)})
        raise OAuthError(f"Google request failed: {e}") from e

    return _profile_from_userinfo(userinfo)
