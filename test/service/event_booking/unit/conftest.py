"""
Unit test configuration for the event booking service.

Overrides fixtures from the root conftest so unit tests never touch the
database or start the TestClient lifespan.
"""

from collections.abc import AsyncGenerator, Generator
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from src.platform.logging.loguru_io_config import build_component_logger


@pytest.fixture(autouse=True, scope='function')
async def clean_database() -> AsyncGenerator[None, None]:
    """No-op override for unit tests - no real database needed"""
    yield


@pytest.fixture(scope='session')
def client() -> Generator[MagicMock, None, None]:
    """Mock client for unit tests - prevents TestClient/lifespan from being created"""
    mock_client = MagicMock(spec=TestClient)
    yield mock_client


@pytest.fixture
def booking_logger():  # type: ignore[no-untyped-def]
    return build_component_logger(component='booking-test')
