"""Pytest configuration and shared fixtures for DuoBudget tests.

Every test gets its own data directory and SQLite file, so imports, category
creation and logging never touch a real database.
"""

from __future__ import annotations

import logging

import pytest
from sqlmodel import select

from duobudget.config import TestConfig
from duobudget.infra.database import create_db_engine, create_session_factory, init_database
from duobudget.logging_config import LOGGER_NAME
from duobudget.models import User

# =============================================================================
# Configuration and Database Fixtures
# =============================================================================


@pytest.fixture
def test_config(tmp_path, monkeypatch) -> TestConfig:
    """Configuration pointing at a per-test data directory and database file."""
    monkeypatch.setenv("DUOBUDGET_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("DUOBUDGET_DATABASE_URL", f"sqlite:///{tmp_path / 'test.db'}")
    for name in (
        "DUOBUDGET_IMPORT_MAX_WORKERS",
        "DUOBUDGET_IMPORT_TIMEOUT_SECONDS",
        "DUOBUDGET_IMPORT_CONFLICT_BACKOFF",
        "DUOBUDGET_MAX_UPLOAD_BYTES",
    ):
        monkeypatch.delenv(name, raising=False)
    return TestConfig()


@pytest.fixture
def db_engine(test_config):
    """Create an isolated SQLite file database with all tables.

    The engine allows cross-thread use because import rows are resolved on
    worker threads.
    """
    engine = create_db_engine(test_config)
    init_database(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    """Session factory matching the one used by the application."""
    return create_session_factory(db_engine)


@pytest.fixture(autouse=True)
def _reset_package_logger():
    """Drop handlers installed by setup_logging so later tests log nowhere stale."""
    yield
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()


# =============================================================================
# Test Data Factories
# =============================================================================


@pytest.fixture
def user_factory(session_factory):
    """Factory for creating persisted users."""

    def _create_user(username: str = "tester") -> User:
        with session_factory() as session:
            existing = session.exec(select(User).where(User.username == username)).first()
            if existing is not None:
                return existing
            user = User(username=username)
            session.add(user)
            session.commit()
            session.refresh(user)
            return user

    return _create_user


@pytest.fixture
def user(user_factory) -> User:
    """Default user owning imported records."""
    return user_factory("tester")
