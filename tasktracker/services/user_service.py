"""User lookups shared by the identity flows and the request gate."""

import logging
from typing import Any

from tasktracker.core import db_client
from tasktracker.core.db_client import is_record_id, sanitize_param


logger = logging.getLogger(__name__)


def normalize_email(email: str) -> str:
    """Canonical form used for storing and matching email addresses."""
    return email.strip().lower()


async def get_user_by_id(*, user_id: str) -> dict[str, Any] | None:
    """Get user by ID.

    Args:
        user_id: User's unique ID

    Returns:
        User record or None if not found (including malformed ids)

    Raises:
        db_client.DatabaseError: If database operation fails
    """
    if not is_record_id(user_id):
        return None
    try:
        return await db_client.get_record(collection="users", record_id=user_id)
    except db_client.RecordNotFoundError:
        return None


async def get_user_by_email(*, email: str) -> dict[str, Any] | None:
    """Get user by email address (case-insensitive via normalisation)."""
    return await db_client.get_first_record(
        collection="users",
        filter_query=f'email = "{sanitize_param(normalize_email(email))}"',
    )


async def get_user_by_username(*, username: str) -> dict[str, Any] | None:
    """Get user by exact username."""
    return await db_client.get_first_record(
        collection="users",
        filter_query=f'username = "{sanitize_param(username)}"',
    )


async def get_user_by_google_id(*, google_id: str) -> dict[str, Any] | None:
    """Get user by Google subject ID."""
    return await db_client.get_first_record(
        collection="users",
        filter_query=f'google_id = "{sanitize_param(google_id)}"',
    )


async def get_user_by_email_or_username(*, identifier: str) -> dict[str, Any] | None:
    """Get user whose email or username matches the login identifier."""
    email = sanitize_param(normalize_email(identifier))
    username = sanitize_param(identifier.strip())
    return await db_client.get_first_record(
        collection="users",
        filter_query=f'(email = "{email}" || username = "{username}")',
    )


async def is_username_taken(*, username: str, exclude_user_id: str | None = None) -> bool:
    """Whether another account already holds ``username``."""
    holder = await get_user_by_username(username=username)
    return holder is not None and holder["id"] != exclude_user_id
