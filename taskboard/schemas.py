"""API request/response schemas for the task board."""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from .models.task import TaskPriority, TaskStatus


# Task-related schemas
class TaskCreate(BaseModel):
    """Schema for creating a new task.

    Field rules are enforced by the task service so that every violation is
    reported together.
    """
    title: Optional[str] = Field(None, description="Task title (3-200 characters)")
    description: Optional[str] = Field(None, description="Task description")
    status: Optional[str] = Field(None, description="Initial status, defaults to TODO")
    priority: Optional[str] = Field(None, description="Task priority, defaults to MEDIUM")


class TaskUpdate(BaseModel):
    """Schema for updating an existing task."""
    title: Optional[str] = Field(None, description="Task title")
    description: Optional[str] = Field(None, description="Task description")
    status: Optional[str] = Field(None, description="Task status")
    priority: Optional[str] = Field(None, description="Task priority")


class TaskStatusUpdate(BaseModel):
    """Schema for a status-only update."""
    status: Optional[str] = Field(None, description="Target status")


class TaskResponse(BaseModel):
    """Schema for a single task in API responses."""
    id: int = Field(..., description="Unique task identifier")
    title: str = Field(..., description="Task title")
    description: str = Field("", description="Task description")
    status: TaskStatus = Field(..., description="Task status")
    priority: TaskPriority = Field(..., description="Task priority")
    created_at: Optional[datetime] = Field(None, description="Task creation timestamp")
    updated_at: Optional[datetime] = Field(None, description="Task last update timestamp")


class TaskEnvelope(BaseModel):
    """Envelope for single-task responses."""
    success: bool = Field(default=True, description="Whether the request succeeded")
    message: Optional[str] = Field(None, description="Outcome message")
    data: TaskResponse = Field(..., description="The task")


class TaskListEnvelope(BaseModel):
    """Envelope for task list responses."""
    success: bool = Field(default=True, description="Whether the request succeeded")
    count: int = Field(..., description="Number of tasks returned")
    data: List[TaskResponse] = Field(..., description="List of tasks")


class MessageResponse(BaseModel):
    """Envelope for responses that carry no task."""
    success: bool = Field(default=True, description="Whether the request succeeded")
    message: str = Field(..., description="Outcome message")


# Statistics schemas
class TaskStatistics(BaseModel):
    """Aggregate task counts for the dashboard."""
    total: int = Field(0, description="Total number of tasks")
    todo: int = Field(0, description="Tasks in TODO")
    in_progress: int = Field(0, description="Tasks in IN_PROGRESS")
    done: int = Field(0, description="Tasks in DONE")
    high_priority: int = Field(0, description="HIGH priority tasks")
    medium_priority: int = Field(0, description="MEDIUM priority tasks")
    low_priority: int = Field(0, description="LOW priority tasks")


class StatisticsEnvelope(BaseModel):
    """Envelope for statistics responses."""
    success: bool = Field(default=True, description="Whether the request succeeded")
    data: TaskStatistics = Field(..., description="Aggregate counts")


# Health check schema
class HealthResponse(BaseModel):
    """Schema for health check responses."""
    success: bool = Field(..., description="Whether the service is healthy")
    service: str = Field(..., description="Service name")
    version: str = Field(..., description="Application version")
    timestamp: datetime = Field(..., description="Health check timestamp")
    database: Dict[str, Any] = Field(..., description="Database diagnostics")
