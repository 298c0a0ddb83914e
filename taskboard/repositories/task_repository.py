"""SQLAlchemy-backed task store."""

import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Mapping, Optional

from sqlalchemy import case, delete, func, select
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from ..database import Database
from ..errors import StoreUnavailableError
from ..models.task import UPDATABLE_FIELDS, Task, TaskPriority, TaskStatus
from ..models.task_record import TaskRecord, utcnow
from ..schemas import TaskStatistics
from ..utils.logging import TimedOperation

logger = logging.getLogger(__name__)

# HIGH first, unknown values last
PRIORITY_RANK = case(
    (TaskRecord.priority == TaskPriority.HIGH.value, 1),
    (TaskRecord.priority == TaskPriority.MEDIUM.value, 2),
    (TaskRecord.priority == TaskPriority.LOW.value, 3),
    else_=4,
)


def _count_where(condition):
    return func.coalesce(func.sum(case((condition, 1), else_=0)), 0)


class TaskRepository:
    """Durable task storage keyed by integer id.

    Every method opens its own short-lived session; nothing is cached
    between calls.
    """

    def __init__(self, database: Database):
        self._database = database

    @contextmanager
    def _session(self, operation: str) -> Iterator[Session]:
        try:
            with self._database.session() as session:
                yield session
        except OperationalError as e:
            logger.error(f"Store unavailable during {operation}: {str(e)}")
            raise StoreUnavailableError("Database connection unavailable") from e

    def list(self, status: Optional[str] = None, priority: Optional[str] = None) -> List[Task]:
        """List tasks, HIGH priority first, newest first within a priority.

        Args:
            status: Only return tasks with this status
            priority: Only return tasks with this priority

        Returns:
            Matching tasks; unknown filter values simply match nothing
        """
        stmt = select(TaskRecord)
        if status:
            stmt = stmt.where(TaskRecord.status == str(getattr(status, "value", status)))
        if priority:
            stmt = stmt.where(TaskRecord.priority == str(getattr(priority, "value", priority)))
        stmt = stmt.order_by(PRIORITY_RANK, TaskRecord.created_at.desc(), TaskRecord.id.desc())

        with TimedOperation("tasks.list", __name__) as op, self._session("list") as session:
            tasks = [Task.from_record(record) for record in session.scalars(stmt)]
            op.rows = len(tasks)
        return tasks

    def get(self, task_id: int) -> Optional[Task]:
        """Get a task by ID.

        Returns:
            The task, or None if no row exists for ``task_id``
        """
        with TimedOperation("tasks.get", __name__), self._session("get") as session:
            record = session.get(TaskRecord, task_id)
            return Task.from_record(record) if record else None

    def insert(self, fields: Mapping[str, Any]) -> Task:
        """Insert a task; the store assigns id, created_at and updated_at."""
        description = fields.get("description")
        record = TaskRecord(
            title=fields["title"].strip(),
            description=description.strip() if description else "",
            status=fields.get("status") or TaskStatus.TODO.value,
            priority=fields.get("priority") or TaskPriority.MEDIUM.value,
        )

        with TimedOperation("tasks.insert", __name__), self._session("insert") as session:
            session.add(record)
            session.flush()
            task = Task.from_record(record)

        logger.info(f"Created task {task.id}: {task.title}")
        return task

    def update_partial(self, task_id: int, fields: Mapping[str, Any]) -> Optional[Task]:
        """Update only the supplied columns.

        Returns:
            The updated task, or None if no row exists for ``task_id``
        """
        changes = self._changes(fields)

        with TimedOperation("tasks.update", __name__), self._session("update") as session:
            record = session.get(TaskRecord, task_id)
            if record is None:
                return None

            if changes:
                for name, value in changes.items():
                    setattr(record, name, value)
                record.updated_at = utcnow()
                session.flush()

            task = Task.from_record(record)

        logger.info(f"Updated task {task_id}: {sorted(changes)}")
        return task

    def update_status(self, task_id: int, status: str) -> Optional[Task]:
        return self.update_partial(task_id, {"status": status})

    def delete(self, task_id: int) -> bool:
        """Delete a task.

        Returns:
            True if a row was removed
        """
        stmt = delete(TaskRecord).where(TaskRecord.id == task_id)
        with TimedOperation("tasks.delete", __name__) as op, self._session("delete") as session:
            result = session.execute(stmt)
            op.rows = result.rowcount

        deleted = result.rowcount > 0
        if deleted:
            logger.info(f"Deleted task {task_id}")
        return deleted

    def aggregate_counts(self) -> TaskStatistics:
        stmt = select(
            func.count(TaskRecord.id).label("total"),
            _count_where(TaskRecord.status == TaskStatus.TODO.value).label("todo"),
            _count_where(TaskRecord.status == TaskStatus.IN_PROGRESS.value).label("in_progress"),
            _count_where(TaskRecord.status == TaskStatus.DONE.value).label("done"),
            _count_where(TaskRecord.priority == TaskPriority.HIGH.value).label("high_priority"),
            _count_where(TaskRecord.priority == TaskPriority.MEDIUM.value).label("medium_priority"),
            _count_where(TaskRecord.priority == TaskPriority.LOW.value).label("low_priority"),
        )

        with TimedOperation("tasks.stats", __name__), self._session("stats") as session:
            row = session.execute(stmt).one()

        return TaskStatistics(**{key: int(value or 0) for key, value in row._mapping.items()})

    def health_check(self) -> Dict[str, Any]:
        """Probe the database.

        Returns:
            Health report from the database handle
        """
        return self._database.health_check()

    @staticmethod
    def _changes(fields: Mapping[str, Any]) -> Dict[str, Any]:
        changes: Dict[str, Any] = {}
        for name in UPDATABLE_FIELDS:
            if name not in fields:
                continue
            value = fields[name]
            if name in ("title", "description"):
                value = value.strip() if value else ""
            changes[name] = getattr(value, "value", value)
        return changes
