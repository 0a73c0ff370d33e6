"""
Pytest configuration and fixtures for backend tests.

Provides shared fixtures for:
- Test database sessions
- Repositories (SQLAlchemy and JSON file backings)
- Services with explicit settings
- Actors
- Sample data factories
- FastAPI test client
"""

import os
import pytest
from datetime import datetime
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Set test environment variables before importing app modules
os.environ['MEETBOARD_DB_URL'] = 'sqlite:///:memory:'
os.environ.setdefault('MEETBOARD_ENV', 'development')

from backend.src.config.settings import AppSettings
from backend.src.db.repository import (
    JsonEventRepository,
    JsonPastEventRepository,
    SqlEventRepository,
    SqlPastEventRepository,
)
from backend.src.middleware.auth import Actor
from backend.src.models import Base
from backend.src.services.event_service import EventService
from backend.src.services.past_event_service import PastEventService


# ============================================================================
# Database Fixtures
# ============================================================================

@pytest.fixture(scope='function')
def test_db_engine():
    """Create an in-memory SQLite database engine for testing."""
    from sqlalchemy import event

    engine = create_engine(
        'sqlite:///:memory:',
        connect_args={'check_same_thread': False},
        poolclass=StaticPool,
    )

    # Deleting an event relies on ON DELETE SET NULL
    def _fk_pragma_on_connect(dbapi_con, con_record):
        dbapi_con.execute('pragma foreign_keys=ON')

    event.listen(engine, 'connect', _fk_pragma_on_connect)

    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture(scope='function')
def test_db_session(test_db_engine):
    """Create a test database session."""
    TestingSessionLocal = sessionmaker(
        autocommit=False,
        autoflush=False,
        bind=test_db_engine
    )
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


# ============================================================================
# Repository Fixtures
# ============================================================================

@pytest.fixture
def event_repo(test_db_session):
    """SQLAlchemy-backed event repository."""
    return SqlEventRepository(test_db_session)


@pytest.fixture
def past_event_repo(test_db_session):
    """SQLAlchemy-backed past-event repository."""
    return SqlPastEventRepository(test_db_session)


@pytest.fixture
def json_event_repo(tmp_path):
    """JSON-file-backed event repository in a temp directory."""
    return JsonEventRepository(tmp_path / 'events.json')


@pytest.fixture
def json_past_event_repo(tmp_path):
    """JSON-file-backed past-event repository in a temp directory."""
    return JsonPastEventRepository(tmp_path / 'past_events.json')


# ============================================================================
# Service Fixtures
# ============================================================================

@pytest.fixture
def test_settings():
    """Settings with moderation enabled and the gallery sweep on."""
    return AppSettings(
        EVENTS_REQUIRE_APPROVAL=True,
        FEATURED_DEFAULT_DAYS=30,
        PAST_EVENT_SWEEP_ENABLED=True,
        SLUG_MAX_ATTEMPTS=5,
    )


@pytest.fixture
def event_service(event_repo, past_event_repo, test_settings):
    """EventService over the SQLAlchemy repositories."""
    return EventService(event_repo, past_event_repo, test_settings)


@pytest.fixture
def past_event_service(past_event_repo, event_repo, test_settings):
    """PastEventService over the SQLAlchemy repositories."""
    return PastEventService(past_event_repo, event_repo, test_settings)


# ============================================================================
# Actor Fixtures
# ============================================================================

@pytest.fixture
def admin():
    """An administrator."""
    return Actor(id='admin-1', role='admin')


@pytest.fixture
def owner():
    """A regular user who owns the events they submit."""
    return Actor(id='user-1', role='user')


@pytest.fixture
def stranger():
    """A regular user who owns nothing."""
    return Actor(id='user-2', role='user')


# ============================================================================
# Sample Data Factories
# ============================================================================

@pytest.fixture
def sample_event_data():
    """Factory for creating sample submission payloads."""
    def _create(**overrides):
        data = {
            'title': 'Spring Meet',
            'description': 'Monthly gathering of air-cooled classics',
            'city': 'Campinas',
            'state': 'SP',
            'location': 'Parque Taquaral',
            'start_at': '2026-01-31T09:00:00',
            'contact_name': 'Ana',
            'contact_phone': '+55 19 99999-0000',
        }
        data.update(overrides)
        return data
    return _create


@pytest.fixture
def sample_event(event_service, sample_event_data, owner):
    """Factory for creating sample events through the submission path."""
    def _create(actor=None, **overrides):
        result = event_service.submit_event(actor or owner, sample_event_data(**overrides))
        return result['event']
    return _create


@pytest.fixture
def stored_event(event_repo):
    """Factory for writing events straight to the repository (any status)."""
    def _create(**overrides):
        fields = {
            'slug': 'legacy-meet',
            'title': 'Legacy Meet',
            'description': 'Completed before galleries existed',
            'city': 'Curitiba',
            'state': 'PR',
            'location': 'Barigui',
            'contact_name': 'Rui',
            'contact_phone': '41 3333-0000',
            'start_at': datetime(2025, 6, 1, 10, 0),
            'status': 'completed',
            'created_by': 'user-1',
            'images': ['https://cdn.example.com/legacy-1.jpg'],
        }
        fields.update(overrides)
        return event_repo.create(fields)
    return _create


# ============================================================================
# FastAPI Test Client Fixture
# ============================================================================

@pytest.fixture
def test_client(test_db_session):
    """Create a test client for FastAPI application."""
    from fastapi.testclient import TestClient
    from backend.src.main import app

    # Override dependencies
    def get_test_db():
        try:
            yield test_db_session
        finally:
            pass

    from backend.src.db.database import get_db

    app.dependency_overrides[get_db] = get_test_db

    with TestClient(app) as client:
        yield client

    # Clear overrides
    app.dependency_overrides.clear()


ADMIN_HEADERS = {'X-Actor-Id': 'admin-1', 'X-Actor-Role': 'admin'}
OWNER_HEADERS = {'X-Actor-Id': 'user-1', 'X-Actor-Role': 'user'}
STRANGER_HEADERS = {'X-Actor-Id': 'user-2', 'X-Actor-Role': 'user'}


@pytest.fixture
def admin_headers():
    return dict(ADMIN_HEADERS)


@pytest.fixture
def owner_headers():
    return dict(OWNER_HEADERS)


@pytest.fixture
def stranger_headers():
    return dict(STRANGER_HEADERS)
