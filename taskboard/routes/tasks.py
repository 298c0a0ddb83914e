"""Task board CRUD and status routes."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from ..deps import get_task_service
from ..errors import TaskValidationError
from ..models.task import Task
from ..schemas import (
    MessageResponse,
    StatisticsEnvelope,
    TaskCreate,
    TaskEnvelope,
    TaskListEnvelope,
    TaskResponse,
    TaskStatusUpdate,
    TaskUpdate,
)
from ..services.task_service import TaskService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["tasks"])


def to_response(task: Task) -> TaskResponse:
    return TaskResponse(**task.to_canonical())


@router.get("/tasks", response_model=TaskListEnvelope)
def list_tasks(
    status_filter: Optional[str] = Query(None, alias="status"),
    priority: Optional[str] = Query(None),
    task_service: TaskService = Depends(get_task_service),
) -> TaskListEnvelope:
    """List tasks, optionally filtered by status and priority.

    Args:
        status_filter: Filter by task status
        priority: Filter by task priority
        task_service: Task service instance

    Returns:
        Tasks ordered HIGH, MEDIUM, LOW and newest first within a priority
    """
    tasks = task_service.list_tasks(status=status_filter, priority=priority)
    return TaskListEnvelope(count=len(tasks), data=[to_response(t) for t in tasks])


@router.get("/tasks/stats", response_model=StatisticsEnvelope)
def get_task_statistics(
    task_service: TaskService = Depends(get_task_service),
) -> StatisticsEnvelope:
    """Get aggregate task counts for the dashboard."""
    logger.debug("Getting task statistics")
    return StatisticsEnvelope(data=task_service.get_statistics())


@router.get("/tasks/status/{task_status}", response_model=TaskListEnvelope)
def list_tasks_by_status(
    task_status: str,
    task_service: TaskService = Depends(get_task_service),
) -> TaskListEnvelope:
    """List tasks in a single status; unknown statuses are rejected."""
    tasks = task_service.list_tasks_by_status(task_status)
    return TaskListEnvelope(count=len(tasks), data=[to_response(t) for t in tasks])


@router.get("/tasks/{task_id}", response_model=TaskEnvelope, response_model_exclude_none=True)
def get_task(
    task_id: int,
    task_service: TaskService = Depends(get_task_service),
) -> TaskEnvelope:
    """Get a specific task by ID."""
    logger.debug(f"Getting task: {task_id}")
    return TaskEnvelope(data=to_response(task_service.get_task(task_id)))


@router.post("/tasks", response_model=TaskEnvelope, status_code=status.HTTP_201_CREATED)
def create_task(
    task_data: TaskCreate,
    task_service: TaskService = Depends(get_task_service),
) -> TaskEnvelope:
    """Create a new task.

    Raises:
        TaskValidationError: If any field rule is violated
    """
    logger.info(f"Creating new task: {task_data.title}")
    task = task_service.create_task(task_data.model_dump(exclude_none=True))
    return TaskEnvelope(message="Task created successfully", data=to_response(task))


@router.put("/tasks/{task_id}", response_model=TaskEnvelope)
def update_task(
    task_id: int,
    task_data: TaskUpdate,
    task_service: TaskService = Depends(get_task_service),
) -> TaskEnvelope:
    """Update a task with the fields present in the body."""
    changes = task_data.model_dump(exclude_unset=True)
    if not changes:
        raise TaskValidationError(["At least one field is required for update"])

    logger.info(f"Updating task {task_id}: {sorted(changes)}")
    task = task_service.update_task(task_id, changes)
    return TaskEnvelope(message="Task updated successfully", data=to_response(task))


@router.patch("/tasks/{task_id}/status", response_model=TaskEnvelope)
def update_task_status(
    task_id: int,
    body: TaskStatusUpdate,
    task_service: TaskService = Depends(get_task_service),
) -> TaskEnvelope:
    """Move a task to a specific status."""
    if not body.status:
        raise TaskValidationError(["Status is required"])

    task = task_service.update_task_status(task_id, body.status)
    return TaskEnvelope(message=f"Task status updated to {task.status}", data=to_response(task))


@router.patch("/tasks/{task_id}/next", response_model=TaskEnvelope)
def move_to_next_status(
    task_id: int,
    task_service: TaskService = Depends(get_task_service),
) -> TaskEnvelope:
    """Advance a task to its next lifecycle status."""
    task = task_service.move_to_next_status(task_id)
    return TaskEnvelope(message=f"Task moved to {task.status}", data=to_response(task))


@router.delete("/tasks/{task_id}", response_model=MessageResponse)
def delete_task(
    task_id: int,
    task_service: TaskService = Depends(get_task_service),
) -> MessageResponse:
    """Delete a task that is not IN_PROGRESS."""
    logger.info(f"Deleting task: {task_id}")
    task_service.delete_task(task_id)
    return MessageResponse(message="Task deleted successfully")
