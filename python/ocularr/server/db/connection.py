"""
Ocularr Server - Database Connection

Owns the SQLAlchemy engine and session factory, and provides the
unit-of-work boundary every multi-row mutation runs inside.
"""

from contextlib import contextmanager
from typing import Generator, Iterator, Optional

from loguru import logger
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from ..config.settings import get_settings
from .models.base import Base


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class DatabaseManager:
    """Database manager for the Cycle Store."""

    def __init__(self, database_url: Optional[str] = None):
        self.settings = get_settings()
        self.database_url = database_url or self.settings.DATABASE_URL
        self.engine: Optional[Engine] = None
        self.SessionLocal: Optional[sessionmaker] = None
        self._initialize_engine()

    def _initialize_engine(self) -> None:
        kwargs = {"echo": self.settings.DB_ECHO}
        if self.database_url.startswith("sqlite"):
            kwargs["connect_args"] = {"check_same_thread": False}
            # In-memory databases must share one connection across sessions
            if ":memory:" in self.database_url or self.database_url == "sqlite://":
                kwargs["poolclass"] = StaticPool

        self.engine = create_engine(self.database_url, **kwargs)
        if self.database_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _enable_sqlite_foreign_keys)

        self.SessionLocal = sessionmaker(
            autocommit=False, autoflush=False, bind=self.engine
        )

    def create_tables(self) -> None:
        """Create all tables known to the declarative base."""
        Base.metadata.create_all(bind=self.engine)

    def drop_tables(self) -> None:
        Base.metadata.drop_all(bind=self.engine)

    def get_session(self) -> Session:
        return self.SessionLocal()

    @contextmanager
    def transaction(self) -> Iterator[Session]:
        """Unit of work: commit on success, roll back on any exception."""
        session = self.get_session()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def get_db_session(self) -> Generator[Session, None, None]:
        session = self.get_session()
        try:
            yield session
        finally:
            session.close()

    def dispose(self) -> None:
        if self.engine is not None:
            self.engine.dispose()


# Global database manager instance
_db_manager: Optional[DatabaseManager] = None


def get_database_manager() -> DatabaseManager:
    """Get the global database manager, creating it on first use."""
    global _db_manager
    if _db_manager is None:
        _db_manager = DatabaseManager()
    return _db_manager


def set_database_manager(manager: Optional[DatabaseManager]) -> None:
    """Replace the global database manager (mainly for testing)."""
    global _db_manager
    _db_manager = manager


def get_db() -> Generator[Session, None, None]:
    """Yield a session from the global manager."""
    yield from get_database_manager().get_db_session()


def init_database(force: bool = False) -> bool:
    """Create tables, optionally dropping existing ones first."""
    manager = get_database_manager()
    try:
        if force:
            logger.warning("Dropping all tables at {}", manager.database_url)
            manager.drop_tables()
        manager.create_tables()
        logger.info("Database initialized at {}", manager.database_url)
        return True
    except Exception:
        logger.exception("Database initialization failed")
        return False
