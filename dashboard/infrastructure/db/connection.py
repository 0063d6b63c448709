import json
import logging
from contextlib import contextmanager
from typing import Generator, Iterator, Optional

from sqlmodel import create_engine, Session, SQLModel, select
from sqlalchemy import event
from sqlalchemy.pool import StaticPool
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from ...core.config import get_settings
from ...core.exceptions import DatabaseError

logger = logging.getLogger(__name__)

# Import all models here to ensure they're registered with SQLModel.metadata
from . import models  # noqa: E402,F401


def json_serializer(value) -> str:
    """Cell values may be datetimes or decimals; store them as their string form."""
    return json.dumps(value, default=str, ensure_ascii=False)


def _enable_sqlite_savepoints(engine: Engine) -> None:
    """pysqlite manages transactions itself and breaks SAVEPOINT; let SQLAlchemy emit BEGIN."""

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN")


class DatabaseManager:
    """
    Database connection manager.
    Owns the engine and hands out sessions that commit on success.
    """

    def __init__(self, database_url: Optional[str] = None, echo: Optional[bool] = None):
        settings = get_settings()
        self.database_url = database_url or settings.database_url
        self.echo = settings.database_echo if echo is None else echo
        self._engine: Optional[Engine] = None

    def _get_database_config(self) -> dict:
        """Get database configuration based on URL."""
        config = {
            "echo": self.echo,
            "json_serializer": json_serializer,
        }

        # SQLite specific configuration
        if self.database_url.startswith("sqlite"):
            config["connect_args"] = {"check_same_thread": False}
            if ":memory:" in self.database_url or self.database_url == "sqlite://":
                config["poolclass"] = StaticPool
        else:
            config["pool_pre_ping"] = True

        return config

    def _create_engine(self) -> Engine:
        """Create database engine."""
        try:
            engine = create_engine(self.database_url, **self._get_database_config())
            if engine.dialect.name == "sqlite":
                _enable_sqlite_savepoints(engine)
            logger.info(f"Database engine created: {engine.url.render_as_string(hide_password=True)}")
            return engine

        except SQLAlchemyError as e:
            logger.error(f"Failed to create database engine: {e}")
            raise DatabaseError(f"Database engine creation failed: {e}", operation="create_engine")

    def get_engine(self) -> Engine:
        """Get or create database engine."""
        if self._engine is None:
            self._engine = self._create_engine()
        return self._engine

    @contextmanager
    def get_session(self) -> Iterator[Session]:
        """Get database session with automatic cleanup."""
        session = Session(self.get_engine())

        try:
            yield session
            session.commit()

        except SQLAlchemyError as e:
            logger.error(f"Database session error: {e}")
            session.rollback()
            raise DatabaseError(f"Database operation failed: {e}")

        except Exception:
            session.rollback()
            raise

        finally:
            session.close()

    def connect(self) -> None:
        """Initialize database connection and create tables."""
        logger.info("Connecting to database...")
        self.create_tables()

        if not self.health_check():
            raise DatabaseError("Database health check failed after connection", operation="connect")

        logger.info("Database connected successfully")

    def disconnect(self) -> None:
        """Close database connections."""
        if self._engine:
            self._engine.dispose()
            logger.debug("Database engine disposed")

        self._engine = None
        logger.info("Database disconnected")

    def create_tables(self) -> None:
        """Create all database tables."""
        try:
            SQLModel.metadata.create_all(bind=self.get_engine())
            logger.info("Database tables created successfully")

        except SQLAlchemyError as e:
            logger.error(f"Failed to create database tables: {e}")
            raise DatabaseError(f"Database table creation failed: {e}", operation="create_tables")

    def health_check(self) -> bool:
        """Check database connectivity."""
        try:
            with Session(self.get_engine()) as session:
                return session.exec(select(1)).one() == 1

        except SQLAlchemyError as e:
            logger.error(f"Database health check failed: {e}")
            return False


# Global database manager instance
database_manager = DatabaseManager()


def get_session_dependency() -> Generator[Session, None, None]:
    """FastAPI dependency for getting database session."""
    with database_manager.get_session() as session:
        yield session
