"""
Pytest configuration and shared fixtures for backend tests.

WHAT: Centralized test configuration with markers and store fixtures
WHY: Every test gets an isolated in-memory document store and a fixed clock
HOW: Define pytest markers and fixtures; seeding helpers live in tests/fixtures
"""

import pytest

from offer_archive.core.config import Settings
from offer_archive.core.database import Database
from offer_archive.store import DocumentStore
from offer_archive.utils.clock import fixed_clock
from tests.fixtures.documents import NOW, ChangeRecorder


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "unit: Unit tests (isolated component tests)"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests (store + registry + handlers)"
    )


@pytest.fixture
def test_settings():
    """
    Settings isolated from the environment.

    WHAT: Provide consistent test configuration
    WHY: Isolate tests from .env files and environment variables
    HOW: Explicit values, no env file
    """
    return Settings(
        _env_file=None,
        DATABASE_URL="sqlite://",
        MAX_BATCH_WRITES=500,
        TYPING_STALE_MINUTES=5,
        LOG_LEVEL="DEBUG",
    )


@pytest.fixture
def database():
    """
    Fresh in-memory database for each test.

    WHAT: Setup and teardown test database
    WHY: Ensure test isolation
    HOW: New engine per test, tables created up front, disposed afterwards
    """
    db = Database("sqlite://")
    db.init()
    yield db
    db.close()


@pytest.fixture
def store(database, test_settings):
    """Document store on the in-memory database."""
    return DocumentStore(database, max_writes=test_settings.MAX_BATCH_WRITES)


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def clock(now):
    return fixed_clock(now)


@pytest.fixture
def recorder(store):
    """Collect changes committed after the fixture is requested."""
    listener = ChangeRecorder()
    store.subscribe(listener)
    yield listener
    store.unsubscribe(listener)
