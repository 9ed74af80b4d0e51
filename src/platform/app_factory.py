"""
FastAPI app factory shared by src/main.py and the test app.

Both get the same routes, error envelope, CORS and probes; only the lifespan
(what gets connected and what runs in the background) differs.
"""

from collections.abc import Callable
from contextlib import AbstractAsyncContextManager
from typing import Any

from fastapi import FastAPI, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from src.platform.config.core_setting import settings
from src.platform.config.di import container
from src.platform.exception.exception_handlers import (
    UNAVAILABLE_DESC,
    error_envelope,
    register_exception_handlers,
)
from src.platform.logging.loguru_io import Logger
from src.platform.observability.tracing import TracingConfig
from src.service.event_booking.driving_adapter.http_controller.event_controller import (
    router as event_router,
)


def create_app(
    *,
    lifespan: Callable[[FastAPI], AbstractAsyncContextManager[Any]],
    title_suffix: str = '',
    description: str = 'Capacity-safe event booking with hold-and-confirm registrations',
    service_name: str = 'event-booking-api',
) -> FastAPI:
    app = FastAPI(
        title=f'{settings.PROJECT_NAME}{title_suffix}',
        description=description,
        version=settings.VERSION,
        lifespan=lifespan,
    )

    # Instrument before routes are mounted
    TracingConfig(service_name=service_name).instrument_fastapi(app=app)

    app.add_middleware(
        CORSMiddleware,  # type: ignore
        allow_origins=settings.BACKEND_CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=['*'],
        allow_headers=['*'],
    )

    register_exception_handlers(app)

    app.include_router(event_router, prefix='/v1/events', tags=['event'])

    _register_probes(app)

    return app


def _register_probes(app: FastAPI) -> None:
    @app.get('/health', tags=['ops'])
    async def health_check() -> dict[str, str]:
        """Liveness: the process is up and serving."""
        return {
            'status': 'healthy',
            'service': settings.PROJECT_NAME,
            'storage_backend': settings.STORAGE_BACKEND,
        }

    @app.get('/health/ready', tags=['ops'], response_model=None)
    async def readiness_check() -> dict[str, str] | JSONResponse:
        """Readiness: bookings can be admitted (the registration store answers)."""
        if settings.STORAGE_BACKEND == 'sql':
            try:
                await container.database().ping()
            except Exception as e:
                Logger.base.warning(f'🩺 [READY] Database unreachable: {type(e).__name__}: {e}')
                return JSONResponse(
                    status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                    content=error_envelope(code='SERVICE_UNAVAILABLE', desc=UNAVAILABLE_DESC),
                )
        return {'status': 'ready'}

    @app.get('/metrics', tags=['ops'])
    async def get_metrics() -> PlainTextResponse:
        """Prometheus scrape endpoint (admissions, confirmations, expirations, notifications)."""
        return PlainTextResponse(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
