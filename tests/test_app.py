"""Tests for application wiring: health, root, error rendering and static files."""

from unittest.mock import patch

from fastapi.testclient import TestClient

from taskboard.errors import StoreUnavailableError
from taskboard.main import create_app
from taskboard.services.task_service import TaskService


class TestHealthAndRoot:
    """Test health check and root endpoints."""

    def test_health_check_healthy(self, client):
        response = client.get("/api/health")

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["service"] == "Task Board API"
        assert body["version"] == "1.0.0"
        assert body["database"]["status"] == "healthy"

    def test_health_check_when_database_closed(self, client):
        client.app.state.database.close()

        response = client.get("/api/health")

        assert response.status_code == 503
        body = response.json()
        assert body["success"] is False
        assert body["database"]["status"] == "unhealthy"

    def test_root(self, client):
        response = client.get("/")

        assert response.status_code == 200
        body = response.json()
        assert body["health_check"] == "/api/health"
        assert body["endpoints"]["tasks"] == "/api/tasks"
        assert body["endpoints"]["ui"] is None


class TestErrorRendering:
    """Test how errors are turned into responses."""

    def test_unknown_route(self, client):
        response = client.get("/api/nothing-here")

        assert response.status_code == 404
        body = response.json()
        assert body["success"] is False
        assert body["path"] == "/api/nothing-here"

    def test_store_unavailable_is_503(self, client):
        with patch.object(
            TaskService,
            "list_tasks",
            side_effect=StoreUnavailableError("Database connection unavailable"),
        ):
            response = client.get("/api/tasks")

        assert response.status_code == 503
        body = response.json()
        assert body["kind"] == "store_unavailable"
        assert body["error"] == "Database connection unavailable"

    def test_unexpected_error_is_500(self, test_settings):
        app = create_app(test_settings)
        with TestClient(app, raise_server_exceptions=False) as client:
            with patch.object(TaskService, "get_statistics", side_effect=RuntimeError("boom")):
                response = client.get("/api/tasks/stats")

        assert response.status_code == 500
        assert response.json()["error"] == "Internal server error"

    def test_request_validation_error(self, client):
        response = client.put("/api/tasks/not-a-number", json={"title": "Valid title"})

        assert response.status_code == 422
        body = response.json()
        assert body["error"] == "Validation error"
        assert body["details"]


class TestLifespan:
    """Test startup and shutdown wiring."""

    def test_service_wired_on_startup_and_released_on_shutdown(self, test_settings):
        app = create_app(test_settings)

        with TestClient(app):
            assert isinstance(app.state.task_service, TaskService)
            assert app.state.database.is_open
            database = app.state.database

        assert app.state.task_service is None
        assert not database.is_open

    def test_file_logging(self, test_settings, tmp_path):
        test_settings.log_dir = tmp_path / "logs"
        app = create_app(test_settings)

        with TestClient(app) as client:
            client.get("/api/tasks")

        assert (tmp_path / "logs" / "app.log").exists()

    def test_failed_request_is_still_logged(self, test_settings, tmp_path):
        test_settings.log_dir = tmp_path / "logs"
        app = create_app(test_settings)

        with TestClient(app, raise_server_exceptions=False) as client:
            with patch.object(TaskService, "get_statistics", side_effect=RuntimeError("boom")):
                response = client.get("/api/tasks/stats")

        assert response.status_code == 500
        log_text = (tmp_path / "logs" / "app.log").read_text(encoding="utf-8")
        assert "GET /api/tasks/stats -> 500" in log_text


class TestStaticFrontend:
    """Test the optional static front-end mount."""

    def test_static_dir_mounted(self, test_settings, tmp_path):
        static_dir = tmp_path / "public"
        static_dir.mkdir()
        (static_dir / "index.html").write_text("<h1>Task Board</h1>")
        test_settings.static_dir = static_dir

        with TestClient(create_app(test_settings)) as client:
            response = client.get("/ui/")
            root = client.get("/").json()

        assert response.status_code == 200
        assert "Task Board" in response.text
        assert root["endpoints"]["ui"] == "/ui"

    def test_missing_static_dir_is_skipped(self, test_settings, tmp_path):
        test_settings.static_dir = tmp_path / "missing"

        with TestClient(create_app(test_settings)) as client:
            assert client.get("/ui/").status_code == 404
