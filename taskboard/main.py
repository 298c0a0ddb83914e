"""FastAPI main application with app factory and route configuration."""

import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import Settings
from .database import Database
from .deps import get_settings
from .errors import ErrorKind, TaskBoardError
from .repositories.task_repository import TaskRepository
from .routes import tasks
from .schemas import HealthResponse
from .services.task_service import TaskService
from .utils.logging import log_shutdown_info, log_startup_info, setup_logging

logger = logging.getLogger(__name__)

ERROR_STATUS_CODES = {
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.VALIDATION_FAILED: status.HTTP_400_BAD_REQUEST,
    ErrorKind.INVALID_TRANSITION: status.HTTP_400_BAD_REQUEST,
    ErrorKind.TERMINAL_STATE: status.HTTP_400_BAD_REQUEST,
    ErrorKind.INVALID_OPERATION: status.HTTP_400_BAD_REQUEST,
    ErrorKind.STORE_UNAVAILABLE: status.HTTP_503_SERVICE_UNAVAILABLE,
}


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager for startup and shutdown events.

    Opens the database pool, wires the task service onto ``app.state`` and
    closes the pool again on shutdown.

    Args:
        app: FastAPI application instance
    """
    settings: Settings = app.state.settings

    setup_logging(settings)
    log_startup_info(settings)

    database = Database(settings)
    try:
        database.open()
        app.state.database = database
        app.state.task_service = TaskService(TaskRepository(database))
        logger.info("Application startup completed successfully")

    except Exception as e:
        logger.error(f"Error during application startup: {str(e)}")
        database.close()
        raise

    yield

    app.state.task_service = None
    database.close()
    log_shutdown_info(settings)


def _error_body(request: Request, status_code: int, message: str, **extra) -> dict:
    body = {
        "success": False,
        "error": message,
        "status_code": status_code,
        "path": str(request.url.path),
    }
    body.update(extra)
    return body


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Settings to use; defaults to the environment-loaded settings

    Returns:
        Configured FastAPI application instance
    """
    settings = settings or get_settings()

    app = FastAPI(
        title=settings.app_name,
        description="Task board API with a TODO / IN_PROGRESS / DONE status state machine",
        version=settings.app_version,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.task_service = None

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE"],
        allow_headers=["Content-Type", "Authorization"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """Log all HTTP requests with their duration."""
        start_time = time.perf_counter()
        status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
        try:
            response = await call_next(request)
            status_code = response.status_code
            return response
        finally:
            duration_ms = (time.perf_counter() - start_time) * 1000
            logger.info(
                f"{request.method} {request.url.path} -> {status_code} in {duration_ms:.1f}ms"
            )

    @app.exception_handler(TaskBoardError)
    async def task_board_exception_handler(request: Request, exc: TaskBoardError):
        """Render service and store errors with their kind."""
        status_code = ERROR_STATUS_CODES.get(exc.kind, status.HTTP_500_INTERNAL_SERVER_ERROR)
        log = logger.error if status_code >= 500 else logger.warning
        log(f"{exc.kind}: {exc.message} for {request.method} {request.url.path}")

        details = exc.to_dict()
        message = details.pop("error")
        return JSONResponse(
            status_code=status_code,
            content=_error_body(request, status_code, message, **details),
        )

    @app.exception_handler(IntegrityError)
    async def integrity_exception_handler(request: Request, exc: IntegrityError):
        """Handle constraint violations raised by the database."""
        logger.warning(f"Integrity error for {request.method} {request.url.path}: {exc.orig}")
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=_error_body(request, 400, "Invalid data"),
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        """Handle HTTP exceptions with proper logging."""
        logger.warning(
            f"HTTP {exc.status_code}: {exc.detail} for {request.method} {request.url.path}"
        )
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(request, exc.status_code, exc.detail),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """Handle request validation errors with detailed information."""
        logger.warning(
            f"Validation error for {request.method} {request.url.path}: {exc.errors()}"
        )
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content=_error_body(
                request, 422, "Validation error", details=jsonable_encoder(exc.errors())
            ),
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        """Handle unexpected exceptions."""
        logger.error(
            f"Unexpected error for {request.method} {request.url.path}: {str(exc)}",
            exc_info=True,
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=_error_body(request, 500, "Internal server error"),
        )

    @app.get("/api/health", tags=["health"], response_model=HealthResponse)
    def health_check(request: Request):
        """Health check endpoint for monitoring and load balancers.

        Returns:
            Service and database health; 503 when the database is unreachable
        """
        task_service = request.app.state.task_service
        if task_service is not None:
            database = task_service.health_check()
        else:
            database = {"status": "unhealthy", "error": "Task service is not initialized"}

        healthy = database.get("status") == "healthy"
        health = HealthResponse(
            success=healthy,
            service=settings.app_name,
            version=settings.app_version,
            timestamp=datetime.now(timezone.utc),
            database=database,
        )
        if not healthy:
            return JSONResponse(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                content=jsonable_encoder(health),
            )
        return health

    @app.get("/", tags=["root"])
    async def root():
        """Root endpoint with API information."""
        return {
            "name": settings.app_name,
            "version": settings.app_version,
            "docs_url": "/docs",
            "health_check": "/api/health",
            "endpoints": {
                "tasks": "/api/tasks",
                "statistics": "/api/tasks/stats",
                "ui": "/ui" if settings.static_dir else None,
            },
        }

    app.include_router(tasks.router, prefix="/api")

    if settings.static_dir is not None:
        if settings.static_dir.is_dir():
            app.mount("/ui", StaticFiles(directory=str(settings.static_dir), html=True), name="ui")
        else:
            logger.warning(f"Static directory {settings.static_dir} not found; front-end disabled")

    logger.info("FastAPI application created and configured")

    return app


# Create the app instance
app = create_app()
