"""SQLAlchemy table mapping for persisted tasks."""

from datetime import datetime, timezone

from sqlalchemy import CheckConstraint, Column, DateTime, Index, Integer, String, Text
from sqlalchemy.orm import declarative_base

from .task import TITLE_MAX_LENGTH, VALID_PRIORITIES, VALID_STATUSES, TaskPriority, TaskStatus

Base = declarative_base()


def utcnow() -> datetime:
    """Naive UTC timestamp."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _one_of(column: str, values) -> str:
    quoted = ", ".join(f"'{value}'" for value in values)
    return f"{column} IN ({quoted})"


class TaskRecord(Base):
    __tablename__ = "tasks"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(TITLE_MAX_LENGTH), nullable=False)
    description = Column(Text, nullable=False, default="")
    status = Column(String(20), nullable=False, default=TaskStatus.TODO.value)
    priority = Column(String(10), nullable=False, default=TaskPriority.MEDIUM.value)
    created_at = Column(DateTime(), nullable=False, default=utcnow)
    updated_at = Column(DateTime(), nullable=False, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        CheckConstraint(_one_of("status", VALID_STATUSES), name="ck_tasks_status"),
        CheckConstraint(_one_of("priority", VALID_PRIORITIES), name="ck_tasks_priority"),
        Index("idx_tasks_status", "status"),
        Index("idx_tasks_priority", "priority"),
    )

    def __repr__(self):
        return f"<TaskRecord(id={self.id}, title='{self.title}', status='{self.status}')>"
