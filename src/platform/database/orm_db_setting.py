"""
SQLAlchemy async engine and session management

This module provides:
1. Database: event-loop-aware engine + session factory, constructed by the DI container
2. Base: declarative base shared by every ORM model
3. create_db_and_tables: metadata.create_all for local runs and tests (production uses alembic)

Transactions are scoped by callers with `async with session.begin()`, which commits on
normal exit and rolls back on any exception (including cancellation).
"""

import asyncio
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any, Optional

from sqlalchemy import event, text
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from src.platform.config.core_setting import settings
from src.platform.logging.loguru_io import Logger


class Base(DeclarativeBase):
    pass


class Database:
    """
    Owns one async engine for the current event loop.

    If the running loop changes (pytest creates a loop per test, anyio.run in scripts)
    the engine is rebuilt so pooled connections never cross loops.
    """

    def __init__(self, *, url: str | None = None, echo: bool = False) -> None:
        self._url = url or settings.DATABASE_URL_ASYNC
        self._echo = echo
        self._engine: Optional[AsyncEngine] = None
        self._session_maker: Optional[async_sessionmaker[AsyncSession]] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None

    @property
    def is_sqlite(self) -> bool:
        return make_url(self._url).get_backend_name() == 'sqlite'

    @property
    def engine(self) -> AsyncEngine:
        try:
            current_loop: asyncio.AbstractEventLoop | None = asyncio.get_running_loop()
        except RuntimeError:
            current_loop = None

        if self._engine is None or (current_loop is not None and self._loop is not current_loop):
            if self._engine is not None:
                Logger.base.warning('🔄 [DB] Event loop changed, rebuilding engine...')
            self._engine = self._create_engine()
            self._session_maker = async_sessionmaker(
                self._engine, class_=AsyncSession, expire_on_commit=False
            )
            self._loop = current_loop
            Logger.base.info(f'🔗 [DB] Engine created ({make_url(self._url).get_backend_name()})')
        return self._engine

    def _create_engine(self) -> AsyncEngine:
        if self.is_sqlite:
            engine = create_async_engine(
                self._url, echo=self._echo, connect_args={'timeout': settings.DB_POOL_TIMEOUT}
            )
            _enable_sqlite_foreign_keys(engine)
            return engine

        return create_async_engine(
            self._url,
            echo=self._echo,
            pool_size=settings.DB_POOL_SIZE,
            max_overflow=settings.DB_POOL_MAX_OVERFLOW,
            pool_timeout=settings.DB_POOL_TIMEOUT,
            pool_recycle=settings.DB_POOL_RECYCLE,
            pool_pre_ping=settings.DB_POOL_PRE_PING,
        )

    @property
    def session_maker(self) -> async_sessionmaker[AsyncSession]:
        _ = self.engine  # make sure the engine belongs to the running loop
        assert self._session_maker is not None
        return self._session_maker

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """Plain session; open a transaction with `async with session.begin()`."""
        async with self.session_maker() as session:
            yield session

    async def create_tables(self) -> None:
        """Create database tables if they don't exist"""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all, checkfirst=True)
        Logger.base.info('🗄️  [DB] Tables ensured')

    async def ping(self) -> None:
        """Round-trip `SELECT 1`; raises whatever the driver raises when the database is down."""
        async with self.engine.connect() as conn:
            await conn.execute(text('SELECT 1'))

    async def drop_tables(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)

    async def dispose(self) -> None:
        if self._engine is not None:
            await self._engine.dispose()
            Logger.base.info('🗄️  [DB] Engine disposed')
        self._engine = None
        self._session_maker = None
        self._loop = None


def _enable_sqlite_foreign_keys(engine: AsyncEngine) -> None:
    @event.listens_for(engine.sync_engine, 'connect')
    def _set_sqlite_pragma(dbapi_connection: Any, connection_record: Any) -> None:
        cursor = dbapi_connection.cursor()
        cursor.execute('PRAGMA foreign_keys=ON')
        cursor.close()


async def create_db_and_tables(database: Database) -> None:
    """Create database tables if they don't exist"""
    try:
        await database.create_tables()
    except Exception as e:
        error_msg = str(e).lower()
        if any(keyword in error_msg for keyword in ['already exists', 'duplicate key']):
            Logger.base.info('Tables already exist, skipping creation')
        else:
            Logger.base.error(f'Error creating tables: {e}')
            raise
