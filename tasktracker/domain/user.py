"""User domain models."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class User(BaseModel):
    """Public view of a user record (never carries the password hash)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str = Field(..., description="Unique user ID")
    email: str = Field(..., description="Email address (lower-cased)")
    username: str | None = Field(default=None, description="Username for local sign-in")
    name: str = Field(..., description="Display name")
    picture: str | None = Field(default=None, description="Avatar URL")
    google_id: str | None = Field(default=None, description="Google account subject ID")
    has_password: bool = Field(default=False, description="Whether local password sign-in is enabled")
    created_at: str | None = Field(default=None, description="Creation timestamp (ISO format)")

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "User":
        """Build the public view from a raw ``users`` row."""
        return cls(
            id=record["id"],
            email=record["email"],
            username=record.get("username"),
            name=record.get("name") or "",
            picture=record.get("picture"),
            google_id=record.get("google_id"),
            has_password=bool(record.get("password_hash")),
            created_at=record.get("created_at"),
        )

    def to_json(self) -> dict[str, Any]:
        """Serialize with camelCase keys for API responses."""
        return self.model_dump(by_alias=True, mode="json")


class GoogleProfile(BaseModel):
    """Identity assertion returned by Google after the OAuth round trip."""

    google_id: str = Field(..., description="Stable Google subject ID")
    email: str = Field(..., description="Verified email address")
    name: str = Field(..., description="Display name")
    picture: str | None = Field(default=None, description="Avatar URL")
