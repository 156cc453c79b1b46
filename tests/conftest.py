"""Shared test fixtures for the playbook sync test suite.

Every test gets a fresh in-memory SQLite database (StaticPool, foreign keys
enforced), so ON DELETE CASCADE behaves as it does in production and no
cleanup between tests is needed.
"""

import os

# Keep the module-level app off the filesystem and out of JSON logging.
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["LOG_FORMAT"] = "text"

import pytest
from fastapi.testclient import TestClient

from playbook_sync.core.config import Settings
from playbook_sync.core.token_factory import create_token
from playbook_sync.database import Database, get_db
from playbook_sync.main import create_app
from playbook_sync.models.enums import Visibility
from playbook_sync.repositories import UserRepository
from playbook_sync.services.playbook_service import PlaybookService

TEST_JWT_SECRET = "test-secret-for-playbook-sync"

SAMPLE_PHASES = [
    {"title": "Preparation", "items": ["Book the venue", "Send invites"]},
    {"title": "Execution", "items": ["Run the session"]},
]


@pytest.fixture()
def database():
    """Fresh in-memory database with the full schema."""
    database = Database("sqlite://")
    database.create_all()
    yield database
    database.dispose()


@pytest.fixture()
def db(database):
    """Per-test database session."""
    session = database.session()
    yield session
    session.close()


@pytest.fixture()
def settings() -> Settings:
    return Settings(
        _env_file=None,
        database_url="sqlite://",
        jwt_secret_key=TEST_JWT_SECRET,
        log_format="text",
    )


@pytest.fixture()
def client(database, db, settings):
    """FastAPI TestClient with the DB dependency overridden to use the test session."""
    app = create_app(settings=settings, database=database)

    def _override_get_db():
        yield db

    app.dependency_overrides[get_db] = _override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture()
def make_user(db):
    """Factory: ``make_user("ana@example.com")`` creates and commits a user."""

    def _make(email: str, display_name: str = "") -> str:
        user = UserRepository(db).create(email, display_name=display_name)
        db.commit()
        return user.id

    return _make


@pytest.fixture()
def owner_id(make_user) -> str:
    return make_user("owner@example.com", "Owner")


@pytest.fixture()
def make_playbook(db, owner_id):
    """Factory for playbooks with tasks already reconciled."""

    def _make(
        phases=None,
        owner: str = None,
        visibility: Visibility = Visibility.PRIVATE,
        folder_id: str = None,
        title: str = "Event playbook",
    ):
        return PlaybookService(db).create_playbook(
            owner_user_id=owner or owner_id,
            title=title,
            phases=SAMPLE_PHASES if phases is None else phases,
            share_visibility=visibility,
            folder_id=folder_id,
        )

    return _make


@pytest.fixture()
def auth_headers():
    """Factory: bearer headers acting as the given user id."""

    def _headers(user_id: str) -> dict:
        token = create_token(subject=user_id, secret=TEST_JWT_SECRET)
        return {"Authorization": f"Bearer {token}"}

    return _headers
