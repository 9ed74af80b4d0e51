"""
OpenTelemetry tracing for the API and the expiration worker.

A booking request publishes its expiration instruction with the trace context in
the AMQP headers; the worker extracts it, so the cancellation minutes later shows
up as a child of the request that created the hold. Spans on either side carry
`booking.event_id` / `booking.registration_id` for lookup by registration.
"""

import os
from typing import Any, Mapping

from opentelemetry import context as otel_context, trace
from opentelemetry.context import Context
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.sqlalchemy import SQLAlchemyInstrumentor
from opentelemetry.propagate import extract, inject
from opentelemetry.sdk.resources import SERVICE_NAME, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter
from opentelemetry.sdk.trace.sampling import ParentBased, TraceIdRatioBased


BOOKING_EVENT_ID = 'booking.event_id'
BOOKING_REGISTRATION_ID = 'booking.registration_id'

# Headers the broker or aio-pika add that are not trace context
_NON_TRACE_HEADERS = frozenset({'x-delay', 'x-death', 'x-first-death-queue'})


class TracingConfig:
    """
    Usage:
        tracing = TracingConfig(service_name="event-booking-api")
        tracing.setup()
        ...
        tracing.shutdown()

    Env: OTEL_EXPORTER_OTLP_ENDPOINT, OTEL_CONSOLE_EXPORT, OTEL_SAMPLE_RATIO (0.0-1.0).
    """

    def __init__(
        self,
        *,
        service_name: str,
        otlp_endpoint: str | None = None,
        enable_console: bool = False,
        sample_ratio: float | None = None,
    ) -> None:
        self.service_name = service_name
        self.otlp_endpoint = otlp_endpoint or os.getenv('OTEL_EXPORTER_OTLP_ENDPOINT')
        self.enable_console = (
            enable_console or os.getenv('OTEL_CONSOLE_EXPORT', 'false').lower() == 'true'
        )
        ratio = sample_ratio if sample_ratio is not None else float(
            os.getenv('OTEL_SAMPLE_RATIO', '1.0')
        )
        self.sample_ratio = min(max(ratio, 0.0), 1.0)

        self._provider: TracerProvider | None = None

    def setup(self) -> None:
        """Install the global tracer provider; exporters only when configured."""
        resource = Resource(attributes={SERVICE_NAME: self.service_name})
        # Worker spans follow the sampling decision of the booking request
        sampler = ParentBased(root=TraceIdRatioBased(self.sample_ratio))
        self._provider = TracerProvider(resource=resource, sampler=sampler)

        if self.otlp_endpoint:
            self._provider.add_span_processor(
                BatchSpanProcessor(OTLPSpanExporter(endpoint=self.otlp_endpoint))
            )
        if self.enable_console:
            self._provider.add_span_processor(BatchSpanProcessor(ConsoleSpanExporter()))

        trace.set_tracer_provider(self._provider)

    def instrument_fastapi(self, *, app: Any, excluded_urls: str = 'health,metrics') -> None:
        FastAPIInstrumentor.instrument_app(app, excluded_urls=excluded_urls)

    def instrument_sqlalchemy(self, *, engine: Any) -> None:
        # AsyncEngine wraps the sync engine the instrumentor hooks into
        SQLAlchemyInstrumentor().instrument(engine=getattr(engine, 'sync_engine', engine))

    def shutdown(self) -> None:
        if self._provider:
            self._provider.shutdown()


def annotate_booking(*, event_id: int | None = None, registration_id: int | None = None) -> None:
    """Tag the current span with the booking it acts on (no-op outside a recording span)."""
    span = trace.get_current_span()
    if not span.is_recording():
        return
    if event_id is not None:
        span.set_attribute(BOOKING_EVENT_ID, event_id)
    if registration_id is not None:
        span.set_attribute(BOOKING_REGISTRATION_ID, registration_id)


def inject_trace_context(*, headers: dict[str, Any] | None = None) -> dict[str, Any]:
    """Add `traceparent` (and `tracestate` when present) to outgoing AMQP headers."""
    headers = headers or {}
    inject(headers)
    return headers


def extract_trace_context(*, headers: Mapping[str, Any] | None = None) -> Context:
    """
    Context from incoming AMQP headers, so consumer spans become children of the publisher span.

    aio-pika hands header values back as bytes; they are decoded before extraction.
    """
    if not headers:
        return otel_context.get_current()
    carrier = {
        key: value.decode() if isinstance(value, bytes) else str(value)
        for key, value in headers.items()
        if key not in _NON_TRACE_HEADERS
    }
    return extract(carrier)
