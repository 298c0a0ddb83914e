"""Database handle wrapping the SQLAlchemy engine and its connection pool."""

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, Optional

from sqlalchemy import create_engine, func, select
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from .config import Settings
from .errors import StoreUnavailableError
from .models.task_record import Base

logger = logging.getLogger(__name__)


class Database:
    """Explicit owner of the connection pool.

    Opened once at startup and closed at shutdown; stores receive it through
    their constructor instead of importing a module-level engine.
    """

    def __init__(self, settings: Settings):
        self._settings = settings
        self._engine: Optional[Engine] = None
        self._session_factory: Optional[sessionmaker] = None

    @property
    def is_open(self) -> bool:
        return self._engine is not None

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            raise StoreUnavailableError("Database is not open")
        return self._engine

    def _engine_options(self) -> Dict[str, Any]:
        url = make_url(self._settings.database_url)
        options: Dict[str, Any] = {
            "echo": self._settings.db_echo,
            "pool_pre_ping": True,
        }

        if url.get_backend_name() == "sqlite":
            options["connect_args"] = {"check_same_thread": False}
            if url.database and url.database != ":memory:":
                Path(url.database).parent.mkdir(parents=True, exist_ok=True)
        else:
            options.update(
                pool_size=self._settings.db_pool_size,
                max_overflow=self._settings.db_max_overflow,
                pool_timeout=self._settings.db_pool_timeout,
                pool_recycle=self._settings.db_pool_recycle,
            )

        return options

    def open(self) -> "Database":
        """Create the engine and make sure the schema exists."""
        if self._engine is not None:
            return self

        self._engine = create_engine(self._settings.database_url, **self._engine_options())
        self._session_factory = sessionmaker(bind=self._engine, expire_on_commit=False)

        Base.metadata.create_all(self._engine)
        logger.info(f"Database opened: {self._engine.url.render_as_string(hide_password=True)}")
        return self

    def close(self) -> None:
        """Dispose of every pooled connection."""
        if self._engine is None:
            return

        logger.info("Closing database pool...")
        self._engine.dispose()
        self._engine = None
        self._session_factory = None
        logger.info("Database pool closed")

    @contextmanager
    def session(self) -> Iterator[Session]:
        """Yield a session that commits on success and rolls back on error."""
        if self._session_factory is None:
            raise StoreUnavailableError("Database is not open")

        session = self._session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def health_check(self) -> Dict[str, Any]:
        """Probe the database and report pool diagnostics."""
        try:
            engine = self.engine
            with engine.connect() as connection:
                server_time = connection.execute(select(func.current_timestamp())).scalar()

            pool = engine.pool
            health = {
                "status": "healthy",
                "database": engine.url.database,
                "dialect": engine.dialect.name,
                "timestamp": str(server_time),
                "pool": pool.status(),
            }
            for name in ("size", "checkedout", "checkedin", "overflow"):
                probe = getattr(pool, name, None)
                if callable(probe):
                    health[f"pool_{name}"] = probe()
            return health

        except (SQLAlchemyError, StoreUnavailableError) as e:
            logger.error(f"Database health check failed: {str(e)}")
            return {
                "status": "unhealthy",
                "error": str(e),
            }
