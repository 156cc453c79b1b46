"""Main FastAPI application.

``create_app`` builds a fully wired application around an explicit
``Database`` handle. Nothing connects at import time; ``app`` at the bottom
is what ``uvicorn playbook_sync.main:app`` serves.
"""

import logging
import time
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .api import folders_router, playbooks_router, sharing_router
from .core.config import DEFAULT_JWT_SECRET, ConfigurationError, Environment, Settings, get_settings
from .core.logging_config import redact, setup_logging
from .database import Database, get_db
from .exceptions import PlaybookException
from .middleware.exception_handler import playbook_exception_handler
from .middleware.request_context import RequestContextMiddleware

logger = logging.getLogger(__name__)

API_VERSION = "1.0.0"


def _validate_database_connection(database: Database) -> None:
    """Test that the database is reachable. Exits with a clear message on failure."""
    masked = redact(database.url)
    logger.info(f"Connecting to database: {masked}")
    try:
        with database.engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.critical(
            "Database connection failed.\n"
            f"  DATABASE_URL: {masked}\n"
            f"  Error: {redact(str(e))}"
        )
        raise SystemExit(1) from e
    logger.info("Database connection verified")


def _startup_checks(settings: Settings) -> None:
    logger.info(f"Environment: {settings.environment.value}")
    try:
        settings.validate_production_config()
    except ConfigurationError as e:
        logger.critical(f"STARTUP BLOCKED: {e}")
        raise SystemExit(1) from e

    if settings.environment == Environment.DEVELOPMENT:
        if settings.jwt_secret_key == DEFAULT_JWT_SECRET:
            logger.warning(
                "SECURITY: JWT_SECRET_KEY is the default. "
                "Anyone can forge tokens. Generate a secure key: openssl rand -hex 32"
            )


def create_app(settings: Optional[Settings] = None, database: Optional[Database] = None) -> FastAPI:
    """Build the application.

    Args:
        settings: Configuration; read from the environment when omitted.
        database: Database handle; built from ``settings.database_url`` when
            omitted. Tests pass an in-memory handle here.
    """
    settings = settings or get_settings()
    owns_database = database is None
    database = database or Database(settings.database_url, settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        _startup_checks(settings)
        _validate_database_connection(database)
        database.create_all()
        logger.info(
            "Playbook sync API started | env=%s | db=%s | cors=%s",
            settings.environment.value,
            "PostgreSQL" if database.is_postgresql else "SQLite",
            ",".join(settings.get_cors_origins()),
        )

        yield  # App runs here

        if owns_database:
            database.dispose()

    app = FastAPI(
        title="Playbook Sync API",
        description=(
            "Task synchronization and access resolution for playbooks. "
            "Reconciles edited phase trees against persisted tasks so that "
            "progress and collaboration history survive structural edits, and "
            "resolves each caller's role through ownership, folder sharing and "
            "circle membership.\n\n"
            "**Authentication:** every endpoint except `/health` requires a "
            "`Bearer` token in the `Authorization` header."
        ),
        version=API_VERSION,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.database = database
    app.state.started_at = time.monotonic()

    # Middleware stack (outermost first: CORS wraps request context).
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.get_cors_origins(),
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE"],
        allow_headers=["Content-Type", "Authorization", "X-Request-ID"],
    )
    app.add_middleware(RequestContextMiddleware)

    app.add_exception_handler(PlaybookException, playbook_exception_handler)

    app.include_router(playbooks_router)
    app.include_router(sharing_router)
    app.include_router(folders_router)

    @app.get("/health")
    def health_check(db: Session = Depends(get_db)):
        """Health check with database status and uptime.

        Never raises: returns degraded status on DB failure so load
        balancers can still probe without receiving 5xx.
        """
        db_status = "ok"
        try:
            db.execute(text("SELECT 1"))
        except SQLAlchemyError:
            logger.warning("Health check database probe failed", exc_info=True)
            db_status = "error"

        return {
            "status": "healthy" if db_status == "ok" else "degraded",
            "db": db_status,
            "uptime_seconds": round(time.monotonic() - app.state.started_at),
            "version": API_VERSION,
        }

    return app


def _build_default_app() -> FastAPI:
    settings = get_settings()
    setup_logging(log_level=settings.log_level, log_format=settings.log_format)
    return create_app(settings)


app = _build_default_app()
