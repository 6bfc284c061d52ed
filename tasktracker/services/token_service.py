"""Bearer token issuing and verification."""

import logging
import time
from collections.abc import Callable
from typing import Any, NamedTuple

from itsdangerous import BadSignature, URLSafeSerializer

from tasktracker.core.config import settings
from tasktracker.core.errors import InvalidTokenError, TokenExpiredError


logger = logging.getLogger(__name__)

TOKEN_SALT = "bearer-token"


class IdentityClaim(NamedTuple):
    """Identity embedded in a verified token."""

    id: str
    email: str
    name: str
    issued_at: int
    expires_at: int


class TokenCodec:
    """Signs and verifies self-contained identity tokens.

    Tokens carry ``{id, email, name, iat, exp}`` where ``exp`` is an absolute
    epoch-seconds timestamp. The signing secret never leaves the server.
    """

    def __init__(
        self,
        *,
        secret_key: str,
        ttl_seconds: int,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if not secret_key:
            msg = "Token secret key must not be empty"
            raise ValueError(msg)
        self._serializer = URLSafeSerializer(secret_key, salt=TOKEN_SALT)
        self._ttl_seconds = ttl_seconds
        self._clock = clock

    def issue(self, user: dict[str, Any]) -> str:
        """Issue a token for a user record."""
        issued_at = int(self._clock())
        payload = {
            "id": str(user["id"]),
            "email": user["email"],
            "name": user.get("name") or "",
            "iat": issued_at,
            "exp": issued_at + self._ttl_seconds,
        }
        return self._serializer.dumps(payload)

    def verify(self, token: str) -> IdentityClaim:
        """Verify signature and expiry, returning the embedded claim.

        Raises:
            InvalidTokenError: If the signature or payload structure is invalid
            TokenExpiredError: If the token's expiry has passed
        """
        try:
            payload = self._serializer.loads(token)
        except BadSignature as e:
            raise InvalidTokenError() from e

        try:
            claim = IdentityClaim(
                id=str(payload["id"]),
                email=str(payload["email"]),
                name=str(payload["name"]),
                issued_at=int(payload["iat"]),
                expires_at=int(payload["exp"]),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise InvalidTokenError() from e

        if self._clock() >= claim.expires_at:
            raise TokenExpiredError()

        return claim


def get_token_codec() -> TokenCodec:
    """FastAPI dependency providing the codec configured from settings."""
    secret_key = settings.require_credential("secret_key", "Token signing secret")
    return TokenCodec(secret_key=secret_key, ttl_seconds=settings.token_ttl_hours * 3600)
