"""
Transaction scope shared by the SQL repositories.

`async with session.begin()` commits on normal exit and rolls back on any
exception or cancellation; transient database failures are re-raised as
TransientStoreError so callers can retry or report 503.
"""

from contextlib import asynccontextmanager
from typing import AsyncContextManager, AsyncIterator, Callable

from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncSession

from src.platform.database.transient_retry import is_transient_db_error
from src.service.event_booking.domain.booking_errors import TransientStoreError


SessionFactory = Callable[..., AsyncContextManager[AsyncSession]]


@asynccontextmanager
async def translate_store_errors() -> AsyncIterator[None]:
    try:
        yield
    except (DBAPIError, ConnectionError, TimeoutError) as e:
        if is_transient_db_error(e):
            raise TransientStoreError(f'Registration store unavailable: {type(e).__name__}') from e
        raise


class SqlRepoBase:
    def __init__(self, session_factory: SessionFactory) -> None:
        self.session_factory = session_factory

    @asynccontextmanager
    async def _transaction(self) -> AsyncIterator[AsyncSession]:
        async with translate_store_errors():
            async with self.session_factory() as session:
                async with session.begin():
                    yield session

    @asynccontextmanager
    async def _read_session(self) -> AsyncIterator[AsyncSession]:
        async with translate_store_errors():
            async with self.session_factory() as session:
                yield session
