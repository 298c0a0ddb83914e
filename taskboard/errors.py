"""Typed errors raised by the task service and the task store."""

from typing import List, Optional, Sequence


class ErrorKind:
    """Machine-distinguishable error kinds."""

    NOT_FOUND = "not_found"
    VALIDATION_FAILED = "validation_failed"
    INVALID_TRANSITION = "invalid_transition"
    TERMINAL_STATE = "terminal_state"
    INVALID_OPERATION = "invalid_operation"
    STORE_UNAVAILABLE = "store_unavailable"


class TaskBoardError(Exception):
    """Base class for every task board error."""

    kind: str = "unknown"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"kind": self.kind, "error": self.message}


class TaskNotFoundError(TaskBoardError):
    """No task row exists for the requested id."""

    kind = ErrorKind.NOT_FOUND

    def __init__(self, task_id: Optional[int] = None, message: str = "Task not found"):
        super().__init__(message)
        self.task_id = task_id


class TaskValidationError(TaskBoardError):
    """One or more field rules were violated.

    Carries every violated rule, not just the first one encountered.
    """

    kind = ErrorKind.VALIDATION_FAILED

    def __init__(self, errors: Sequence[str]):
        self.errors: List[str] = list(errors)
        super().__init__(", ".join(self.errors))

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["details"] = self.errors
        return data


class InvalidTransitionError(TaskBoardError):
    """The requested status change is not an edge of the transition graph."""

    kind = ErrorKind.INVALID_TRANSITION

    def __init__(self, current: str, target: str, allowed: Sequence[str]):
        self.current = current
        self.target = target
        self.allowed = list(allowed)
        super().__init__(
            f"Invalid status transition from {current} to {target}. "
            f"Allowed: {', '.join(self.allowed) or 'none'}"
        )

    def to_dict(self) -> dict:
        data = super().to_dict()
        data.update(current=self.current, target=self.target, allowed=self.allowed)
        return data


class TerminalStateError(TaskBoardError):
    """The task has no further status to advance to."""

    kind = ErrorKind.TERMINAL_STATE

    def __init__(self, status: str):
        self.status = status
        super().__init__(f"Task is already at final status: {status}")


class InvalidOperationError(TaskBoardError):
    """A business rule forbids the operation in the task's current state."""

    kind = ErrorKind.INVALID_OPERATION


class StoreUnavailableError(TaskBoardError):
    """The persistent store could not be reached."""

    kind = ErrorKind.STORE_UNAVAILABLE
