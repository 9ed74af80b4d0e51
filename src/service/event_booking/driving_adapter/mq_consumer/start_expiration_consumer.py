"""
Standalone Expiration Worker Entry Point

Usage:
    expiration-consumer            # console script from pyproject

Run with EXPIRATION_WORKER_ENABLED=false on the API replicas to keep
expiration handling in dedicated processes.
"""

import signal

import anyio

from src.platform.config.di import container
from src.platform.logging.loguru_io import Logger
from src.platform.logging.loguru_io_config import setup_logging
from src.platform.observability.tracing import TracingConfig


async def main() -> None:
    """Main async entry point for the expiration worker."""
    config = container.config_service()
    setup_logging(debug=config.DEBUG)
    Logger.base.info('🚀 [Expiration Consumer] Starting...')

    tracing = TracingConfig(service_name='event-booking-expiration-worker')
    tracing.setup()
    Logger.base.info('📊 [Expiration Consumer] OpenTelemetry configured')

    database = container.database()
    if config.STORAGE_BACKEND == 'sql':
        tracing.instrument_sqlalchemy(engine=database.engine)

    rabbitmq_client = container.rabbitmq_client()
    try:
        await rabbitmq_client.connect()
    except Exception as e:
        Logger.base.error(f'❌ [Expiration Consumer] Failed to connect to RabbitMQ: {e}')
        raise

    consumer = container.expiration_consumer()
    shutdown_event = anyio.Event()

    try:
        with anyio.open_signal_receiver(signal.SIGINT, signal.SIGTERM) as signals:

            async def signal_watcher() -> None:
                async for signum in signals:
                    Logger.base.info(f'🛑 [Expiration Consumer] Received signal {signum}')
                    shutdown_event.set()
                    break

            async with anyio.create_task_group() as tg:
                tg.start_soon(signal_watcher)
                tg.start_soon(consumer.start)

                await shutdown_event.wait()

                Logger.base.info('🛑 [Expiration Consumer] Initiating graceful shutdown...')
                await consumer.stop()
                tg.cancel_scope.cancel()

    finally:
        await rabbitmq_client.close()
        await database.dispose()
        tracing.shutdown()
        Logger.base.info('👋 [Expiration Consumer] Shutdown complete')


def run() -> None:
    anyio.run(main)


if __name__ == '__main__':
    run()
