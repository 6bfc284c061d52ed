"""Domain models and DTOs."""

from tasktracker.domain.auth_models import LoginRequest, SetPasswordRequest, SignupRequest
from tasktracker.domain.create_models import TaskCreate, UserCreate
from tasktracker.domain.task import Task, TaskPriority, TaskStatus
from tasktracker.domain.update_models import TaskUpdate, UserCredentialsUpdate, UserGoogleLink
from tasktracker.domain.user import GoogleProfile, User


__all__ = [
    "GoogleProfile",
    "LoginRequest",
    "SetPasswordRequest",
    "SignupRequest",
    "Task",
    "TaskCreate",
    "TaskPriority",
    "TaskStatus",
    "TaskUpdate",
    "User",
    "UserCreate",
    "UserCredentialsUpdate",
    "UserGoogleLink",
]
