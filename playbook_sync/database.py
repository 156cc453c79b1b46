"""Database handle and session management.

The engine and session factory live on an explicit ``Database`` object that
the application factory (or a test fixture) creates and passes down. Nothing
in the package opens a connection at import time.
"""

from typing import Iterator, Optional

from fastapi import Request
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from .core.config import Settings

# Create base class for models
Base = declarative_base()


class Database:
    """Owns one engine and the session factory bound to it."""

    def __init__(self, url: str, settings: Optional[Settings] = None):
        self.url = url
        self.engine = _create_engine(url, settings)
        self.session_factory = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)

    @property
    def is_postgresql(self) -> bool:
        return self.url.startswith("postgresql")

    def create_all(self) -> None:
        """Create every table registered on ``Base``."""
        from . import models  # noqa: F401  (registers mappers)

        Base.metadata.create_all(bind=self.engine)

    def session(self) -> Session:
        return self.session_factory()

    def dispose(self) -> None:
        self.engine.dispose()


def _create_engine(url: str, settings: Optional[Settings]) -> Engine:
    """Create an engine with database-specific tuning."""
    if url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        # In-memory databases vanish with their connection; keep a single one.
        if ":memory:" in url or url in ("sqlite://", "sqlite+pysqlite://"):
            kwargs["poolclass"] = StaticPool
        engine = create_engine(url, **kwargs)

        # SQLite defaults foreign_keys to OFF, so ON DELETE CASCADE would be
        # silently ignored unless enabled on every connection.
        @event.listens_for(engine, "connect")
        def _set_sqlite_pragma(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        return engine

    settings = settings or Settings()
    return create_engine(
        url,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        pool_timeout=settings.db_pool_timeout,
        pool_recycle=settings.db_pool_recycle,
        # Detects stale connections before use.
        pool_pre_ping=True,
    )


def get_db(request: Request) -> Iterator[Session]:
    """Dependency for FastAPI routes to get a database session.

    Rolls back the transaction on unhandled exceptions so that the
    connection is returned to the pool in a clean state.
    """
    database: Database = request.app.state.database
    db = database.session()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
