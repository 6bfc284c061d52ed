from tasktracker.services import (
    identity_service,
    password_service,
    task_service,
    token_service,
    user_service,
)


__all__ = [
    "identity_service",
    "password_service",
    "task_service",
    "token_service",
    "user_service",
]
