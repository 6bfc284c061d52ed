"""Update models for database operations."""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class TaskUpdate(BaseModel):
    """Partial task update; only fields present in the request are applied.

    ``model_fields_set`` distinguishes an absent field from an explicit null.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    title: str | None = None
    description: str | None = None
    due_date: str | None = None
    priority: str | None = None
    status: str | None = None


class UserGoogleLink(BaseModel):
    """Update payload when a Google account is linked to an existing user."""

    google_id: str
    picture: str | None = None


class UserCredentialsUpdate(BaseModel):
    """Update payload when a user gains local sign-in credentials."""

    username: str
    password_hash: str
    name: str | None = None
