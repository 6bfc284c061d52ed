"""Task domain models and enums."""

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class TaskPriority(StrEnum):
    """How urgent a task is."""

    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


class TaskStatus(StrEnum):
    """Task progress state."""

    TODO = "To Do"
    IN_PROGRESS = "In Progress"
    DONE = "Done"


class Task(BaseModel):
    """Task data transfer object."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str = Field(..., description="Unique task ID from database")
    title: str = Field(..., description="Task title")
    description: str | None = Field(default=None, description="Detailed task description")
    priority: TaskPriority = Field(default=TaskPriority.MEDIUM, description="Task priority")
    status: TaskStatus = Field(default=TaskStatus.TODO, description="Current progress state")
    due_date: str | None = Field(default=None, description="Due date (ISO format)")
    user_id: str = Field(..., description="Owner user ID")
    created_at: str = Field(..., description="Creation timestamp (ISO format)")
    updated_at: str = Field(..., description="Last update timestamp (ISO format)")

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "Task":
        """Build a task from a raw ``tasks`` row."""
        return cls.model_validate(record)

    def to_json(self) -> dict[str, Any]:
        """Serialize with camelCase keys for API responses."""
        return self.model_dump(by_alias=True, mode="json")


def allowed_values(enum_cls: type[StrEnum]) -> str:
    """Human-readable list of an enum's values, e.g. ``Low, Medium, High``."""
    return ", ".join(member.value for member in enum_cls)
