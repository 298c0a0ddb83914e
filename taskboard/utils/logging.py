"""Structured logging configuration for the Task Board application."""

import logging
import logging.handlers
import sys
import time
from typing import Optional

from ..config import Settings


class ColoredFormatter(logging.Formatter):
    """Custom formatter with color support for console output."""

    # ANSI color codes
    COLORS = {
        'DEBUG': '\033[36m',      # Cyan
        'INFO': '\033[32m',       # Green
        'WARNING': '\033[33m',    # Yellow
        'ERROR': '\033[31m',      # Red
        'CRITICAL': '\033[35m',   # Magenta
        'RESET': '\033[0m'        # Reset
    }

    def format(self, record):
        """Format log record with colors for console output."""
        # Color a copy so file handlers sharing the record stay plain
        record = logging.makeLogRecord(record.__dict__)
        if record.levelname in self.COLORS:
            record.levelname = (
                f"{self.COLORS[record.levelname]}{record.levelname}"
                f"{self.COLORS['RESET']}"
            )

        return super().format(record)


def _level(settings: Settings) -> int:
    return getattr(logging, settings.log_level.upper(), logging.INFO)


def setup_logging(settings: Settings) -> None:
    """Setup structured logging for the application.

    Args:
        settings: Application settings containing logging configuration
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(_level(settings))

    # Clear any existing handlers
    root_logger.handlers.clear()

    # Console handler with colors
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(_level(settings))
    console_handler.setFormatter(ColoredFormatter(
        fmt='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    ))
    root_logger.addHandler(console_handler)

    if settings.log_dir is not None:
        _add_file_handlers(root_logger, settings)

    # Configure specific loggers
    configure_module_loggers(settings)

    logger = logging.getLogger(__name__)
    logger.info(f"Logging configured with level: {settings.log_level.upper()}")
    if settings.log_dir is not None:
        logger.info(f"Log files will be written to: {settings.log_dir.absolute()}")


def _add_file_handlers(root_logger: logging.Logger, settings: Settings) -> None:
    """Attach rotating app.log and error.log handlers under the log directory."""
    log_dir = settings.log_dir
    log_dir.mkdir(parents=True, exist_ok=True)

    file_formatter = logging.Formatter(
        fmt='%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    # File handler for all logs
    file_handler = logging.handlers.RotatingFileHandler(
        filename=log_dir / "app.log",
        maxBytes=10 * 1024 * 1024,  # 10MB
        backupCount=5,
        encoding='utf-8'
    )
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(file_formatter)
    root_logger.addHandler(file_handler)

    # Error file handler for errors and above
    error_handler = logging.handlers.RotatingFileHandler(
        filename=log_dir / "error.log",
        maxBytes=10 * 1024 * 1024,  # 10MB
        backupCount=5,
        encoding='utf-8'
    )
    error_handler.setLevel(logging.ERROR)
    error_handler.setFormatter(file_formatter)
    root_logger.addHandler(error_handler)


def configure_module_loggers(settings: Settings) -> None:
    """Configure logging levels for specific modules.

    Args:
        settings: Application settings
    """
    for logger_name in ('taskboard.main', 'taskboard.routes', 'taskboard.services',
                        'taskboard.repositories', 'taskboard.database'):
        logging.getLogger(logger_name).setLevel(_level(settings))

    # Third-party library loggers (usually more verbose)
    third_party_loggers = {
        'uvicorn': logging.INFO,
        'uvicorn.access': logging.WARNING,
        'fastapi': logging.INFO,
        'sqlalchemy.engine': logging.INFO if settings.db_echo else logging.WARNING,
        'sqlalchemy.pool': logging.WARNING,
        'httpx': logging.WARNING,
    }

    for logger_name, level in third_party_loggers.items():
        logging.getLogger(logger_name).setLevel(level)

    if settings.environment == "production":
        logging.getLogger('uvicorn.access').setLevel(logging.ERROR)


def log_startup_info(settings: Settings):
    """Log application startup information.

    Args:
        settings: Application settings
    """
    logger = logging.getLogger("taskboard.startup")

    logger.info("=" * 60)
    logger.info(f"{settings.app_name} {settings.app_version} starting")
    logger.info("=" * 60)
    logger.info(f"Environment: {settings.environment}")
    logger.info(f"Log Level: {settings.log_level.upper()}")
    logger.info(f"Listening on: {settings.app_host}:{settings.app_port}")
    logger.info(f"Static front-end: {settings.static_dir or 'disabled'}")
    logger.info("=" * 60)


def log_shutdown_info(settings: Settings):
    """Log application shutdown information."""
    logger = logging.getLogger("taskboard.shutdown")

    logger.info("=" * 60)
    logger.info(f"{settings.app_name} shutting down")
    logger.info("=" * 60)


class TimedOperation:
    """Context manager for timing operations."""

    def __init__(self, operation_name: str, logger_name: str = __name__,
                 level: int = logging.DEBUG):
        """Initialize timed operation.

        Args:
            operation_name: Name of the operation
            logger_name: Logger name to use
            level: Level for the completion message
        """
        self.operation_name = operation_name
        self.logger = logging.getLogger(logger_name)
        self.level = level
        self.start_time: Optional[float] = None
        self.rows: Optional[int] = None

    @property
    def elapsed_ms(self) -> float:
        if self.start_time is None:
            return 0.0
        return (time.perf_counter() - self.start_time) * 1000

    def __enter__(self):
        """Start timing."""
        self.start_time = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """End timing and log result."""
        if exc_type is None:
            rows = f" | Rows: {self.rows}" if self.rows is not None else ""
            self.logger.log(
                self.level,
                f"{self.operation_name} executed: {self.elapsed_ms:.1f}ms{rows}"
            )
        else:
            self.logger.error(
                f"{self.operation_name} failed after {self.elapsed_ms:.1f}ms: {exc_val}"
            )
        return False


__all__ = [
    'setup_logging',
    'configure_module_loggers',
    'log_startup_info',
    'log_shutdown_info',
    'TimedOperation',
]
