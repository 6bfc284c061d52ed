"""Pydantic models for creating records in database."""

from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


def utc_now_iso() -> str:
    """Current UTC time as an ISO-8601 string."""
    return datetime.now(UTC).isoformat()


class UserCreate(BaseModel):
    """Pydantic model for creating a user record."""

    email: str = Field(..., description="Email address (lower-cased)")
    name: str = Field(..., description="Display name of the user")
    username: str | None = Field(default=None, description="Username for local sign-in")
    password_hash: str | None = Field(default=None, description="bcrypt digest of the password")
    google_id: str | None = Field(default=None, description="Google account subject ID")
    picture: str | None = Field(default=None, description="Avatar URL")
    created_at: str = Field(default_factory=utc_now_iso, description="Creation timestamp")


class TaskCreate(BaseModel):
    """Request body for creating a task.

    Fields are loosely typed so the service can report the same validation
    messages the frontend expects instead of generic schema errors.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    title: str | None = None
    description: str | None = None
    due_date: str | None = None
    priority: str | None = None
    status: str | None = None
