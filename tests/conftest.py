"""Shared test fixtures and configuration for the test suite."""

from pathlib import Path
from typing import Callable, Generator
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

# Add the parent directory to the path for imports
import sys

sys.path.append(str(Path(__file__).parent.parent))

from taskboard.config import Settings
from taskboard.database import Database
from taskboard.main import create_app
from taskboard.models.task import Task
from taskboard.repositories.task_repository import TaskRepository
from taskboard.services.task_service import TaskService


@pytest.fixture
def test_settings(tmp_path) -> Settings:
    """Create test settings backed by a temporary SQLite database."""
    return Settings(
        database_url=f"sqlite:///{tmp_path / 'taskboard.db'}",
        log_level="DEBUG",
        log_dir=None,
        static_dir=None,
        environment="test",
    )


@pytest.fixture
def database(test_settings) -> Generator[Database, None, None]:
    """Open a database for the test and close it afterwards."""
    db = Database(test_settings).open()
    yield db
    db.close()


@pytest.fixture
def repository(database) -> TaskRepository:
    """Create a task repository on the test database."""
    return TaskRepository(database)


@pytest.fixture
def task_service(repository) -> TaskService:
    """Create a task service instance for testing."""
    return TaskService(repository)


@pytest.fixture
def mock_repository() -> MagicMock:
    """Task repository double for testing service rules in isolation."""
    return MagicMock(spec=TaskRepository)


@pytest.fixture
def client(test_settings) -> Generator[TestClient, None, None]:
    """Create a test client for the FastAPI app."""
    app = create_app(test_settings)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def make_task(task_service) -> Callable[..., Task]:
    """Factory creating persisted tasks, optionally already moved to a status."""

    def _make_task(title: str = "Test Task", status: str = "TODO", **fields) -> Task:
        task = task_service.create_task({"title": title, **fields})
        if status in ("IN_PROGRESS", "DONE"):
            task = task_service.update_task_status(task.id, "IN_PROGRESS")
        if status == "DONE":
            task = task_service.update_task_status(task.id, "DONE")
        return task

    return _make_task


# Test data fixtures
@pytest.fixture
def sample_task_data():
    """Sample task data for testing."""
    return {
        "title": "Test Task",
        "description": "This is a test task description",
        "priority": "MEDIUM",
    }
