"""Unit test configuration for platform modules (no database, no TestClient)."""

from collections.abc import AsyncGenerator

import pytest


@pytest.fixture(autouse=True, scope='function')
async def clean_database() -> AsyncGenerator[None, None]:
    """No-op override for unit tests - no real database needed"""
    yield
