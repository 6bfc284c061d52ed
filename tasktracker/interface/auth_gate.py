"""Request gate: resolve the bearer token on a request to the acting user."""

import logging
from typing import Any

from fastapi import Depends, Header

from tasktracker.core import db_client
from tasktracker.core.errors import ServerError, TaskTrackerError, UnauthorizedError
from tasktracker.services import user_service
from tasktracker.services.token_service import TokenCodec, get_token_codec


logger = logging.getLogger(__name__)

BEARER_SCHEME = "Bearer"


def _extract_token(authorization: str | None) -> str:
    if not authorization:
        raise UnauthorizedError("No authorization header provided")
    scheme, _, token = authorization.partition(" ")
    if scheme != BEARER_SCHEME:
        raise UnauthorizedError("Invalid authorization format. Use: Bearer <token>")
    # Clients may strip the trailing space of "Bearer "
    if not token.strip():
        raise UnauthorizedError("No token provided")
    return token.strip()


async def _resolve_user(authorization: str | None, codec: TokenCodec) -> dict[str, Any]:
    token = _extract_token(authorization)
    claim = codec.verify(token)

    try:
        user = await user_service.get_user_by_id(user_id=claim.id)
    except db_client.DatabaseError as e:
        logger.error("auth_gate_lookup_failed", extra={"user_id": claim.id, "error": str(e)})
        raise ServerError("Authentication failed") from e

    if not user:
        raise UnauthorizedError("User not found")
    return user


async def require_user(
    authorization: str | None = Header(default=None),
    codec: TokenCodec = Depends(get_token_codec),
) -> dict[str, Any]:
    """Dependency for protected routes; rejects the request unless a valid token is supplied.

    Raises:
        UnauthorizedError: Missing/malformed header, empty token or unknown user
        TokenExpiredError: Token past its expiry
        InvalidTokenError: Token signature or structure invalid
        ServerError: User lookup failed
    """
    try:
        return await _resolve_user(authorization, codec)
    except TaskTrackerError as e:
        logger.warning("auth_gate_rejected", extra={"error": e.code, "reason": e.message})
        raise


async def optional_user(
    authorization: str | None = Header(default=None),
    codec: TokenCodec = Depends(get_token_codec),
) -> dict[str, Any] | None:
    """Dependency that attaches the user when a valid token is present and never rejects."""
    try:
        return await _resolve_user(authorization, codec)
    except TaskTrackerError as e:
        logger.debug("auth_gate_optional_skipped", extra={"reason": e.message})
        return None
