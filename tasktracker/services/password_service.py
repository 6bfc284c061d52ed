"""Password hashing with bcrypt."""

import logging

import bcrypt

from tasktracker.core.config import constants, settings


logger = logging.getLogger(__name__)


def hash_password(plaintext: str, *, rounds: int | None = None) -> str:
    """Hash a password with a fresh per-password salt.

    Raises:
        ValueError: If the password exceeds bcrypt's 72-byte input limit
    """
    encoded = plaintext.encode("utf-8")
    if len(encoded) > constants.PASSWORD_MAX_BYTES:
        msg = f"Password must be at most {constants.PASSWORD_MAX_BYTES} bytes long"
        raise ValueError(msg)
    salt = bcrypt.gensalt(rounds=rounds or settings.bcrypt_rounds)
    return bcrypt.hashpw(encoded, salt).decode("ascii")


def verify_password(plaintext: str, digest: str | None) -> bool:
    """Check a password against a stored digest using bcrypt's own comparison."""
    if not digest:
        return False

    encoded = plaintext.encode("utf-8")
    if len(encoded) > constants.PASSWORD_MAX_BYTES:
        return False

    try:
        return bcrypt.checkpw(encoded, digest.encode("ascii"))
    except ValueError:
        logger.warning("Stored password digest is malformed")
        return False
