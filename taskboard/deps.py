"""Dependency injection helpers for FastAPI."""

from functools import lru_cache

from fastapi import Request

from .config import Settings, settings
from .errors import StoreUnavailableError
from .services.task_service import TaskService


@lru_cache()
def get_settings() -> Settings:
    """Get application settings (cached)."""
    return settings


def get_task_service(request: Request) -> TaskService:
    """Get the task service created during application startup."""
    task_service = getattr(request.app.state, "task_service", None)
    if task_service is None:
        raise StoreUnavailableError("Task service is not initialized")
    return task_service
