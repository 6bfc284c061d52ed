"""Task service for owner-scoped CRUD operations."""

import logging
from datetime import UTC
from enum import StrEnum
from typing import Any

from dateutil import parser as dateutil_parser

from tasktracker.core import db_client
from tasktracker.core.db_client import is_record_id, sanitize_param
from tasktracker.core.errors import ForbiddenError, InvalidInputError, NotFoundError
from tasktracker.core.logging import log_with_user_context, span
from tasktracker.domain.create_models import TaskCreate, utc_now_iso
from tasktracker.domain.task import Task, TaskPriority, TaskStatus, allowed_values
from tasktracker.domain.update_models import TaskUpdate


logger = logging.getLogger(__name__)

MAX_TASKS_PER_LIST = 1000


def _validate_task_id(task_id: str) -> str:
    if not is_record_id(task_id):
        raise InvalidInputError("Invalid task ID")
    return task_id


def _validate_choice(value: str, enum_cls: type[StrEnum], label: str) -> str:
    if value not in {member.value for member in enum_cls}:
        raise InvalidInputError(f"{label} must be one of: {allowed_values(enum_cls)}")
    return value


def _clean_title(title: str | None) -> str:
    if title is None or not title.strip():
        raise InvalidInputError("Title is required")
    return title.strip()


def _clean_description(description: str | None) -> str | None:
    if description is None:
        return None
    return description.strip() or None


def _parse_due_date(due_date: str | None) -> str | None:
    """Parse an ISO-8601 date or datetime; naive values are taken as UTC."""
    if due_date is None or not due_date.strip():
        return None
    try:
        parsed = dateutil_parser.isoparse(due_date.strip())
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=UTC)
        return parsed.astimezone(UTC).isoformat()
    except (ValueError, OverflowError) as e:
        raise InvalidInputError("Invalid date format for dueDate") from e


def _check_ownership(record: dict[str, Any], owner_id: str, action: str) -> None:
    if record["user_id"] != owner_id:
        log_with_user_context(logger, "warning", "Task access denied", user_id=owner_id, task_id=record["id"])
        raise ForbiddenError(f"You don't have permission to {action} this task")


async def _get_owned_record(*, owner_id: str, task_id: str, action: str) -> dict[str, Any]:
    """Load a task, checking existence before ownership."""
    _validate_task_id(task_id)
    try:
        record = await db_client.get_record(collection="tasks", record_id=task_id)
    except db_client.RecordNotFoundError as e:
        raise NotFoundError("Task not found") from e
    _check_ownership(record, owner_id, action)
    return record


async def list_tasks(
    *,
    owner_id: str,
    status: str | None = None,
    priority: str | None = None,
    search: str | None = None,
) -> list[Task]:
    """List a user's tasks, newest first.

    Args:
        owner_id: Requesting user ID
        status: Only tasks with this status
        priority: Only tasks with this priority
        search: Case-insensitive substring matched against title or description

    Returns:
        Matching tasks (empty list when nothing matches)

    Raises:
        InvalidInputError: If status or priority is not a known value
        db_client.DatabaseError: If database operation fails
    """
    with span("task_service.list_tasks"):
        filters = [f'user_id = "{sanitize_param(owner_id)}"']

        if status:
            _validate_choice(status, TaskStatus, "Status")
            filters.append(f'status = "{sanitize_param(status)}"')

        if priority:
            _validate_choice(priority, TaskPriority, "Priority")
            filters.append(f'priority = "{sanitize_param(priority)}"')

        if search:
            term = sanitize_param(search)
            filters.append(f'(title ~ "{term}" || description ~ "{term}")')

        records = await db_client.list_records(
            collection="tasks",
            per_page=MAX_TASKS_PER_LIST,
            filter_query=" && ".join(filters),
            sort="-created_at,-id",
        )
        return [Task.from_record(record) for record in records]


async def get_task(*, owner_id: str, task_id: str) -> Task:
    """Get a single task owned by ``owner_id``.

    Raises:
        InvalidInputError: If the id is malformed
        NotFoundError: If the task does not exist
        ForbiddenError: If the task belongs to someone else
    """
    with span("task_service.get_task"):
        record = await _get_owned_record(owner_id=owner_id, task_id=task_id, action="view")
        return Task.from_record(record)


async def create_task(*, owner_id: str, task: TaskCreate) -> Task:
    """Create a task owned by ``owner_id`` with defaults Medium / To Do."""
    with span("task_service.create_task"):
        title = _clean_title(task.title)
        priority = TaskPriority.MEDIUM
        if task.priority is not None:
            priority = _validate_choice(task.priority, TaskPriority, "Priority")
        status = TaskStatus.TODO
        if task.status is not None:
            status = _validate_choice(task.status, TaskStatus, "Status")
        now = utc_now_iso()

        task_data: dict[str, Any] = {
            "title": title,
            "description": _clean_description(task.description),
            "due_date": _parse_due_date(task.due_date),
            "priority": str(priority),
            "status": str(status),
            "user_id": owner_id,
            "created_at": now,
            "updated_at": now,
        }

        record = await db_client.create_record(collection="tasks", data=task_data)
        log_with_user_context(logger, "info", f'Task created: "{title}"', user_id=owner_id, task_id=record["id"])
        return Task.from_record(record)


def _build_update_data(update: TaskUpdate) -> dict[str, Any]:
    """Translate supplied fields into column updates; absent fields are left alone."""
    supplied = update.model_fields_set
    data: dict[str, Any] = {}

    if "title" in supplied:
        data["title"] = _clean_title(update.title)
    if "description" in supplied:
        data["description"] = _clean_description(update.description)
    if "due_date" in supplied:
        data["due_date"] = _parse_due_date(update.due_date)
    if "priority" in supplied:
        if update.priority is None:
            raise InvalidInputError(f"Priority must be one of: {allowed_values(TaskPriority)}")
        data["priority"] = _validate_choice(update.priority, TaskPriority, "Priority")
    if "status" in supplied:
        if update.status is None:
            raise InvalidInputError(f"Status must be one of: {allowed_values(TaskStatus)}")
        data["status"] = _validate_choice(update.status, TaskStatus, "Status")

    return data


async def update_task(*, owner_id: str, task_id: str, update: TaskUpdate) -> Task:
    """Apply a partial update to a task owned by ``owner_id``.

    Raises:
        InvalidInputError: If the id or any supplied field is invalid
        NotFoundError: If the task does not exist
        ForbiddenError: If the task belongs to someone else
    """
    with span("task_service.update_task"):
        record = await _get_owned_record(owner_id=owner_id, task_id=task_id, action="update")

        data = _build_update_data(update)
        data["updated_at"] = utc_now_iso()

        try:
            updated = await db_client.update_record(collection="tasks", record_id=record["id"], data=data)
        except db_client.RecordNotFoundError as e:
            # Deleted between the ownership check and the write
            raise NotFoundError("Task not found") from e

        log_with_user_context(logger, "info", f'Task updated: "{updated["title"]}"', user_id=owner_id, task_id=task_id)
        return Task.from_record(updated)


async def delete_task(*, owner_id: str, task_id: str) -> None:
    """Permanently delete a task owned by ``owner_id``.

    Raises:
        InvalidInputError: If the id is malformed
        NotFoundError: If the task does not exist
        ForbiddenError: If the task belongs to someone else
    """
    with span("task_service.delete_task"):
        record = await _get_owned_record(owner_id=owner_id, task_id=task_id, action="delete")

        try:
            await db_client.delete_record(collection="tasks", record_id=record["id"])
        except db_client.RecordNotFoundError as e:
            raise NotFoundError("Task not found") from e

        log_with_user_context(logger, "info", f'Task deleted: "{record["title"]}"', user_id=owner_id, task_id=task_id)
