"""
Production FastAPI Application

HTTP API plus the embedded expiration worker (EXPIRATION_WORKER_ENABLED=true).
Run the worker on its own with driving_adapter/mq_consumer/start_expiration_consumer.py.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import anyio
from fastapi import FastAPI
from fastapi.responses import RedirectResponse

from src.platform.app_factory import create_app
from src.platform.config.di import container
from src.platform.config.wire_modules import WIRE_MODULES
from src.platform.database.orm_db_setting import create_db_and_tables
from src.platform.logging.loguru_io import Logger
from src.platform.logging.loguru_io_config import setup_logging
from src.platform.observability.tracing import TracingConfig


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage application lifespan: startup and shutdown."""
    config = container.config_service()
    setup_logging(debug=config.DEBUG)
    Logger.base.info('🚀 [Booking API] Starting up...')

    tracing = TracingConfig(service_name='event-booking-api')
    tracing.setup()
    Logger.base.info('📊 [Booking API] OpenTelemetry tracing configured')

    container.wire(modules=WIRE_MODULES)
    Logger.base.info('🔌 [Booking API] Dependency injection wired')

    database = container.database()
    if config.STORAGE_BACKEND == 'sql':
        tracing.instrument_sqlalchemy(engine=database.engine)
        if config.DB_AUTO_CREATE_TABLES:
            await create_db_and_tables(database)
        Logger.base.info('🗄️  [Booking API] Database engine ready + instrumented')
    else:
        Logger.base.warning('🧪 [Booking API] Using in-memory store (data is not persisted)')

    # Fail fast: bookings cannot be expired without the broker
    rabbitmq_client = container.rabbitmq_client()
    await rabbitmq_client.connect()
    Logger.base.info('🐇 [Booking API] RabbitMQ delayed exchange ready')

    async with anyio.create_task_group() as tg:
        consumer = None
        if config.EXPIRATION_WORKER_ENABLED:
            consumer = container.expiration_consumer()
            tg.start_soon(consumer.start)
            Logger.base.info('⌛ [Booking API] Embedded expiration worker started')

        Logger.base.info('✅ [Booking API] Ready to serve requests')
        yield

        Logger.base.info('🛑 [Booking API] Shutting down...')
        if consumer is not None:
            await consumer.stop()
        tg.cancel_scope.cancel()

    await rabbitmq_client.close()
    await database.dispose()

    tracing.shutdown()
    Logger.base.info('📊 [Booking API] Tracing shutdown complete')

    container.unwire()
    Logger.base.info('👋 [Booking API] Shutdown complete')


app = create_app(lifespan=lifespan)


@app.get('/')
async def root() -> RedirectResponse:
    """Root endpoint - redirect to docs."""
    return RedirectResponse(url='/docs')
