"""Task CRUD endpoints for the signed-in user."""

import logging
from typing import Any

from fastapi import APIRouter, Depends, Query, status

from tasktracker.core import db_client
from tasktracker.core.errors import ServerError
from tasktracker.domain.create_models import TaskCreate
from tasktracker.domain.update_models import TaskUpdate
from tasktracker.interface.auth_gate import require_user
from tasktracker.services import task_service


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/tasks", tags=["tasks"])


def _store_failure(event: str, message: str, user: dict[str, Any], error: Exception) -> ServerError:
    logger.error(event, extra={"user_id": user["id"], "error": str(error)})
    return ServerError(message)


@router.get("")
async def list_tasks(
    status_filter: str | None = Query(default=None, alias="status"),
    priority: str | None = Query(default=None),
    search: str | None = Query(default=None),
    user: dict[str, Any] = Depends(require_user),
) -> dict[str, Any]:
    """List the user's tasks, optionally filtered by status, priority and a search term."""
    try:
        tasks = await task_service.list_tasks(
            owner_id=user["id"],
            status=status_filter,
            priority=priority,
            search=search,
        )
    except db_client.DatabaseError as e:
        raise _store_failure("list_tasks_failed", "Failed to fetch tasks", user, e) from e

    return {"success": True, "count": len(tasks), "tasks": [task.to_json() for task in tasks]}


@router.get("/{task_id}")
async def get_task(task_id: str, user: dict[str, Any] = Depends(require_user)) -> dict[str, Any]:
    try:
        task = await task_service.get_task(owner_id=user["id"], task_id=task_id)
    except db_client.DatabaseError as e:
        raise _store_failure("get_task_failed", "Failed to fetch task", user, e) from e

    return {"success": True, "task": task.to_json()}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_task(payload: TaskCreate, user: dict[str, Any] = Depends(require_user)) -> dict[str, Any]:
    try:
        task = await task_service.create_task(owner_id=user["id"], task=payload)
    except db_client.DatabaseError as e:
        raise _store_failure("create_task_failed", "Failed to create task", user, e) from e

    return {"success": True, "message": "Task created successfully", "task": task.to_json()}


@router.put("/{task_id}")
async def update_task(
    task_id: str,
    payload: TaskUpdate,
    user: dict[str, Any] = Depends(require_user),
) -> dict[str, Any]:
    """Partially update a task; omitted fields keep their values."""
    try:
        task = await task_service.update_task(owner_id=user["id"], task_id=task_id, update=payload)
    except db_client.DatabaseError as e:
        raise _store_failure("update_task_failed", "Failed to update task", user, e) from e

    return {"success": True, "message": "Task updated successfully", "task": task.to_json()}


@router.delete("/{task_id}")
async def delete_task(task_id: str, user: dict[str, Any] = Depends(require_user)) -> dict[str, Any]:
    try:
        await task_service.delete_task(owner_id=user["id"], task_id=task_id)
    except db_client.DatabaseError as e:
        raise _store_failure("delete_task_failed", "Failed to delete task", user, e) from e

    return {"success": True, "message": "Task deleted successfully"}
