"""Task service enforcing validation and the status state machine."""

import logging
from typing import Any, Dict, List, Mapping, Optional

from ..errors import (
    InvalidOperationError,
    InvalidTransitionError,
    TaskNotFoundError,
    TaskValidationError,
    TerminalStateError,
)
from ..models.task import UPDATABLE_FIELDS, VALID_STATUSES, Task, TaskStatus
from ..repositories.task_repository import TaskRepository
from ..schemas import TaskStatistics

logger = logging.getLogger(__name__)


class TaskService:
    """Business rules for tasks; the store is its only collaborator."""

    def __init__(self, repository: TaskRepository):
        """Initialize the task service.

        Args:
            repository: Task store the service delegates persistence to
        """
        self._repository = repository
        logger.info("Task service initialized")

    def list_tasks(self, status: Optional[str] = None, priority: Optional[str] = None) -> List[Task]:
        """List tasks with optional filters.

        Filter values are passed through as-is; unknown values match nothing.
        """
        tasks = self._repository.list(status=status, priority=priority)
        logger.debug(f"Listed {len(tasks)} tasks (status={status}, priority={priority})")
        return tasks

    def list_tasks_by_status(self, status: str) -> List[Task]:
        """List tasks in one status, rejecting unknown statuses.

        Raises:
            TaskValidationError: If status is not a known status
        """
        self._require_valid_status(status)
        return self._repository.list(status=status)

    def get_task(self, task_id: int) -> Task:
        """Get a task by ID.

        Raises:
            TaskNotFoundError: If no task exists for the ID
        """
        task = self._repository.get(task_id)
        if task is None:
            logger.debug(f"Task {task_id} not found")
            raise TaskNotFoundError(task_id)
        return task

    def create_task(self, task_data: Mapping[str, Any]) -> Task:
        """Create a new task.

        Args:
            task_data: Client-supplied fields (title, description, status, priority)

        Returns:
            Created task with its assigned id and timestamps

        Raises:
            TaskValidationError: If any field rule is violated
        """
        task = Task(**{name: task_data.get(name) for name in UPDATABLE_FIELDS})
        self._require_valid(task)

        canonical = task.to_canonical()
        return self._repository.insert({name: canonical[name] for name in UPDATABLE_FIELDS})

    def update_task(self, task_id: int, task_data: Mapping[str, Any]) -> Task:
        """Update a task.

        The supplied fields are merged over the stored task and the merged
        result is validated as a whole before anything is written.

        Raises:
            TaskNotFoundError: If the task does not exist
            TaskValidationError: If the merged task violates a field rule
            InvalidTransitionError: If the status change is not allowed
        """
        existing = self.get_task(task_id)
        changes = self._supplied_fields(task_data)

        candidate = Task(**{**existing.to_canonical(), **changes})
        self._require_valid(candidate)

        new_status = changes.get("status")
        if new_status and new_status != existing.status:
            self._require_transition(existing, new_status)

        if not changes:
            return existing

        updated = self._repository.update_partial(task_id, changes)
        if updated is None:
            raise TaskNotFoundError(task_id)
        return updated

    def update_task_status(self, task_id: int, status: str) -> Task:
        """Update task status.

        Raises:
            TaskNotFoundError: If the task does not exist
            TaskValidationError: If status is not a known status
            InvalidTransitionError: If the status change is not allowed
        """
        existing = self.get_task(task_id)
        self._require_valid_status(status)
        self._require_transition(existing, status)

        return self._set_status(existing, status)

    def move_to_next_status(self, task_id: int) -> Task:
        """Advance a task one step along TODO -> IN_PROGRESS -> DONE.

        Raises:
            TaskNotFoundError: If the task does not exist
            TerminalStateError: If the task has nowhere further to go
        """
        task = self.get_task(task_id)

        if task.is_terminal():
            raise TerminalStateError(task.status)

        return self._set_status(task, task.forward_statuses()[0])

    def delete_task(self, task_id: int) -> bool:
        """Delete a task.

        Raises:
            TaskNotFoundError: If the task does not exist
            InvalidOperationError: If the task is IN_PROGRESS
        """
        task = self.get_task(task_id)

        if task.status == TaskStatus.IN_PROGRESS.value:
            raise InvalidOperationError(
                "Cannot delete task that is IN_PROGRESS. Move to TODO or DONE first."
            )

        return self._repository.delete(task_id)

    def get_statistics(self) -> TaskStatistics:
        """Get task counts.

        Returns:
            Totals per status and per priority
        """
        return self._repository.aggregate_counts()

    def health_check(self) -> Dict[str, Any]:
        """Check the task store.

        Returns:
            Store health report with a "status" of "healthy" or "unhealthy"
        """
        return self._repository.health_check()

    def _set_status(self, task: Task, status: str) -> Task:
        updated = self._repository.update_status(task.id, status)
        if updated is None:
            raise TaskNotFoundError(task.id)
        logger.info(f"Updated task {task.id} status: {task.status} -> {updated.status}")
        return updated

    @staticmethod
    def _supplied_fields(task_data: Mapping[str, Any]) -> Dict[str, Any]:
        """Pick the updatable fields the client actually sent.

        A null status or priority counts as not sent; a null title or
        description clears the field.
        """
        changes: Dict[str, Any] = {}
        for name in UPDATABLE_FIELDS:
            if name not in task_data:
                continue
            value = task_data[name]
            if value is None and name in ("status", "priority"):
                continue
            changes[name] = getattr(value, "value", value)
        return changes

    @staticmethod
    def _require_valid(task: Task) -> None:
        valid, errors = task.validate_task()
        if not valid:
            logger.warning(f"Task validation failed: {errors}")
            raise TaskValidationError(errors)

    @staticmethod
    def _require_valid_status(status: Any) -> None:
        if getattr(status, "value", status) not in VALID_STATUSES:
            raise TaskValidationError(
                [f"Invalid status. Must be one of: {', '.join(VALID_STATUSES)}"]
            )

    @staticmethod
    def _require_transition(task: Task, status: Any) -> None:
        if not task.can_transition_to(status):
            raise InvalidTransitionError(
                current=task.status,
                target=getattr(status, "value", status),
                allowed=task.next_statuses(),
            )
