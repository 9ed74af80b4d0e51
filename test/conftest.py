"""
Test Configuration and Fixtures

This module provides:
- Test environment variables (set before any application import)
- Database setup and per-test cleanup (sqlite by default, TEST_DATABASE_URL for PostgreSQL)
- Session-scoped TestClient running the test app (no RabbitMQ, recording scheduler)
- SQL repository fixtures bound to a fresh engine per test

Architecture:
- Unit tests (test/**/unit/): marked `unit`, override fixtures with no-ops in their own conftest.py
- Integration tests: real database, cleaned before every test
"""

# =============================================================================
# CRITICAL: Environment setup MUST happen before any other imports
# Settings() is instantiated at import time of src.platform.config.core_setting
# =============================================================================
import os
from pathlib import Path


def _early_setup_test_environment() -> None:
    """Set test environment variables before any module imports."""
    test_log_dir = Path(__file__).parent / 'test_log'
    test_log_dir.mkdir(exist_ok=True)
    os.environ['TEST_LOG_DIR'] = str(test_log_dir)

    # One database file per xdist worker
    worker_id = os.environ.get('PYTEST_XDIST_WORKER', 'master')
    db_name = 'event_booking_test' if worker_id == 'master' else f'event_booking_test_{worker_id}'
    os.environ['DATABASE_URL'] = os.environ.get(
        'TEST_DATABASE_URL', f'sqlite+aiosqlite:///{test_log_dir / f"{db_name}.db"}'
    )

    os.environ['STORAGE_BACKEND'] = 'sql'
    os.environ['NOTIFICATION_BACKEND'] = 'log'
    os.environ['EXPIRATION_WORKER_ENABLED'] = 'false'
    os.environ['DB_AUTO_CREATE_TABLES'] = 'false'

    os.environ.setdefault('DB_POOL_SIZE', '2')
    os.environ.setdefault('DB_POOL_MAX_OVERFLOW', '2')


# Call immediately to set env vars before any imports
_early_setup_test_environment()

import asyncio  # noqa: E402
from collections.abc import AsyncGenerator, Generator  # noqa: E402
from typing import Any  # noqa: E402

from fastapi.testclient import TestClient  # noqa: E402
import pytest  # noqa: E402
from sqlalchemy.ext.asyncio import create_async_engine  # noqa: E402

from src.platform.database.orm_db_setting import Base, Database  # noqa: E402
from src.platform.logging.loguru_io_config import setup_logging  # noqa: E402
from src.service.event_booking.driven_adapter.model import (  # noqa: E402, F401
    EventModel,
    RegistrationModel,
)
from src.service.event_booking.driven_adapter.repo.event_repo_impl import (  # noqa: E402
    EventRepoImpl,
)
from src.service.event_booking.driven_adapter.repo.registration_repo_impl import (  # noqa: E402
    RegistrationRepoImpl,
)


# =============================================================================
# Pytest Hooks: Detect test type and setup accordingly
# =============================================================================
def _is_unit_test_only_run(config: pytest.Config) -> bool:
    markexpr = config.getoption('markexpr', default='')
    if markexpr and 'unit' in str(markexpr) and 'not unit' not in str(markexpr):
        return True

    args = config.args or []
    test_paths = [arg for arg in args if arg and not arg.startswith('-')]
    return bool(test_paths and all('/unit/' in path or '\\unit\\' in path for path in test_paths))


def pytest_sessionstart(session: pytest.Session) -> None:
    setup_logging(debug=True)

    if _is_unit_test_only_run(session.config):
        return

    asyncio.run(_setup_test_database())


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    for item in items:
        markers = [m.name for m in item.iter_markers()]
        if 'unit' not in markers:
            item.fixturenames.append('clean_database')


# =============================================================================
# Database Setup and Cleanup
# =============================================================================
def _get_test_database_url() -> str:
    return os.environ['DATABASE_URL']


async def _setup_test_database() -> None:
    engine = create_async_engine(_get_test_database_url())
    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)
            await conn.run_sync(Base.metadata.create_all)
    finally:
        await engine.dispose()


async def _clean_all_tables() -> None:
    engine = create_async_engine(_get_test_database_url())
    try:
        async with engine.begin() as conn:
            # Children first (registrations -> events)
            for table in reversed(Base.metadata.sorted_tables):
                await conn.execute(table.delete())
    finally:
        await engine.dispose()


# =============================================================================
# Integration Test Fixtures
# =============================================================================
@pytest.fixture(scope='function')
async def clean_database() -> AsyncGenerator[None, None]:
    await _clean_all_tables()
    yield


@pytest.fixture
async def database() -> AsyncGenerator[Database, None]:
    """Engine bound to the current test's event loop."""
    db = Database(url=_get_test_database_url())
    yield db
    await db.dispose()


@pytest.fixture
def event_repo(database: Database) -> EventRepoImpl:
    return EventRepoImpl(session_factory=database.session)


@pytest.fixture
def registration_repo(database: Database) -> RegistrationRepoImpl:
    return RegistrationRepoImpl(session_factory=database.session)


# =============================================================================
# Session-scoped Fixtures
# =============================================================================
@pytest.fixture(scope='session')
def client() -> Generator[Any, None, None]:
    from test.test_main import app

    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client
