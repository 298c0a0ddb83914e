"""Domain models for the task board."""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, Field, model_validator


class TaskStatus(str, Enum):
    """Task status enumeration."""
    TODO = "TODO"
    IN_PROGRESS = "IN_PROGRESS"
    DONE = "DONE"


class TaskPriority(str, Enum):
    """Task priority enumeration."""
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


VALID_STATUSES: Tuple[str, ...] = tuple(s.value for s in TaskStatus)
VALID_PRIORITIES: Tuple[str, ...] = tuple(p.value for p in TaskPriority)

# Allowed next statuses, in the order "move to next" considers them.
STATUS_TRANSITIONS: Dict[TaskStatus, Tuple[TaskStatus, ...]] = {
    TaskStatus.TODO: (TaskStatus.IN_PROGRESS,),
    TaskStatus.IN_PROGRESS: (TaskStatus.TODO, TaskStatus.DONE),
    TaskStatus.DONE: (TaskStatus.IN_PROGRESS,),
}

LIFECYCLE_ORDER: Tuple[TaskStatus, ...] = (
    TaskStatus.TODO,
    TaskStatus.IN_PROGRESS,
    TaskStatus.DONE,
)

TITLE_MIN_LENGTH = 3
TITLE_MAX_LENGTH = 200

UPDATABLE_FIELDS: Tuple[str, ...] = ("title", "description", "status", "priority")


def _plain(value: Any) -> Any:
    """Unwrap enum members to their string value."""
    return value.value if isinstance(value, Enum) else value


def _as_status(value: Any) -> Optional[TaskStatus]:
    try:
        return TaskStatus(_plain(value))
    except ValueError:
        return None


class Task(BaseModel):
    """Task domain model.

    Construction never fails on bad field values; call ``validate_task`` to
    find out whether the task may be persisted.
    """

    id: Optional[int] = Field(None, description="Store-assigned task identifier")
    title: Any = Field("", description="Task title")
    description: Any = Field("", description="Task description")
    status: Any = Field(TaskStatus.TODO.value, description="Task status")
    priority: Any = Field(TaskPriority.MEDIUM.value, description="Task priority")
    created_at: Optional[datetime] = Field(None, description="Task creation timestamp")
    updated_at: Optional[datetime] = Field(None, description="Task last update timestamp")

    @model_validator(mode="before")
    @classmethod
    def fill_defaults(cls, data: Any) -> Any:
        """Drop missing values so field defaults apply."""
        if isinstance(data, dict):
            return {key: _plain(value) for key, value in data.items() if value is not None}
        return data

    @classmethod
    def from_record(cls, record: Any) -> "Task":
        """Create a task from a database row."""
        return cls(
            id=record.id,
            title=record.title,
            description=record.description,
            status=record.status,
            priority=record.priority,
            created_at=record.created_at,
            updated_at=record.updated_at,
        )

    def validate_task(self) -> Tuple[bool, List[str]]:
        """Check every field rule.

        Returns:
            Tuple of (valid, error messages); all violated rules are reported.
        """
        errors: List[str] = []

        if not self.title or not isinstance(self.title, str):
            errors.append("Title is required")
        elif len(self.title.strip()) < TITLE_MIN_LENGTH:
            errors.append(f"Title must be at least {TITLE_MIN_LENGTH} characters")
        elif len(self.title.strip()) > TITLE_MAX_LENGTH:
            errors.append(f"Title must be less than {TITLE_MAX_LENGTH} characters")

        if not isinstance(self.description, str):
            errors.append("Description must be text")

        if self.status not in VALID_STATUSES:
            errors.append(f"Status must be one of: {', '.join(VALID_STATUSES)}")

        if self.priority not in VALID_PRIORITIES:
            errors.append(f"Priority must be one of: {', '.join(VALID_PRIORITIES)}")

        if self.priority == TaskPriority.HIGH.value and not self._clean(self.description):
            errors.append("HIGH priority tasks should have a description")

        return len(errors) == 0, errors

    def next_statuses(self) -> List[str]:
        """Statuses reachable from the current one, in transition-table order."""
        current = _as_status(self.status)
        if current is None:
            return []
        return [s.value for s in STATUS_TRANSITIONS[current]]

    def forward_statuses(self) -> List[str]:
        """Reachable statuses that lie later in the lifecycle than the current one."""
        current = _as_status(self.status)
        if current is None:
            return []
        rank = LIFECYCLE_ORDER.index(current)
        return [
            s for s in self.next_statuses()
            if LIFECYCLE_ORDER.index(TaskStatus(s)) > rank
        ]

    def can_transition_to(self, new_status: Any) -> bool:
        """Check whether ``new_status`` is a legal next status."""
        target = _plain(new_status)
        if target not in VALID_STATUSES:
            return False
        return target in self.next_statuses()

    def is_terminal(self) -> bool:
        return not self.forward_statuses()

    def to_canonical(self) -> Dict[str, Any]:
        """Externally visible representation with trimmed text fields."""
        return {
            "id": self.id,
            "title": self._clean(self.title),
            "description": self._clean(self.description),
            "status": self.status,
            "priority": self.priority,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    @staticmethod
    def _clean(value: Any) -> Any:
        if not value:
            return ""
        return value.strip() if isinstance(value, str) else value
