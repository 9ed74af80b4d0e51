"""
RabbitMQ connection for delayed delivery

Topology (declared idempotently on connect):
- exchange: `x-delayed-message` with `x-delayed-type: direct`, durable
- queue: durable, bound to the exchange with a single routing key

A message published with header `x-delay=<ms>` is held by the broker's
delayed-message plugin and routed to the queue once the delay elapses.
One instance is owned by the DI container and shared by the scheduler
(publish side) and the expiration consumer (subscribe side).
"""

from typing import Any

import aio_pika
from aio_pika import DeliveryMode, Message
from aio_pika.abc import (
    AbstractExchange,
    AbstractQueue,
    AbstractRobustChannel,
    AbstractRobustConnection,
)
from opentelemetry import trace

from src.platform.config.core_setting import settings
from src.platform.logging.loguru_io import Logger
from src.platform.observability.tracing import inject_trace_context


DELAYED_EXCHANGE_TYPE = 'x-delayed-message'


class RabbitMqClient:
    def __init__(
        self,
        *,
        url: str | None = None,
        exchange_name: str | None = None,
        queue_name: str | None = None,
        routing_key: str | None = None,
        prefetch_count: int | None = None,
    ) -> None:
        self.url = url or settings.RABBITMQ_URL.get_secret_value()
        self.exchange_name = exchange_name or settings.RABBITMQ_EXCHANGE
        self.queue_name = queue_name or settings.RABBITMQ_QUEUE
        self.routing_key = routing_key or settings.RABBITMQ_ROUTING_KEY
        self.prefetch_count = prefetch_count or settings.RABBITMQ_PREFETCH_COUNT

        self._connection: AbstractRobustConnection | None = None
        self._channel: AbstractRobustChannel | None = None
        self._exchange: AbstractExchange | None = None
        self._queue: AbstractQueue | None = None

    @property
    def is_connected(self) -> bool:
        return self._connection is not None and not self._connection.is_closed

    async def connect(self) -> None:
        """Open a robust connection and declare the delayed exchange + queue."""
        if self.is_connected:
            return

        self._connection = await aio_pika.connect_robust(self.url)
        self._channel = await self._connection.channel()  # type: ignore[assignment]
        assert self._channel is not None
        await self._channel.set_qos(prefetch_count=self.prefetch_count)

        self._exchange = await self._channel.declare_exchange(
            self.exchange_name,
            type=DELAYED_EXCHANGE_TYPE,
            durable=True,
            arguments={'x-delayed-type': 'direct'},
        )
        self._queue = await self._channel.declare_queue(self.queue_name, durable=True)
        await self._queue.bind(self._exchange, routing_key=self.routing_key)

        Logger.base.info(
            f'🐇 [RabbitMQ] Connected: exchange={self.exchange_name} queue={self.queue_name}'
        )

    @property
    def queue(self) -> AbstractQueue:
        if self._queue is None:
            raise RuntimeError('RabbitMQ client is not connected')
        return self._queue

    async def publish_delayed(
        self, *, body: bytes, delay_ms: int, headers: dict[str, Any] | None = None
    ) -> None:
        if self._exchange is None:
            raise RuntimeError('RabbitMQ client is not connected')

        tracer = trace.get_tracer(__name__)
        with tracer.start_as_current_span(
            'rabbitmq.publish',
            attributes={
                'messaging.system': 'rabbitmq',
                'messaging.destination': self.exchange_name,
                'messaging.rabbitmq.routing_key': self.routing_key,
            },
        ):
            message_headers = inject_trace_context(headers=dict(headers or {}))
            message_headers['x-delay'] = max(int(delay_ms), 0)
            await self._exchange.publish(
                Message(
                    body=body,
                    content_type='application/json',
                    delivery_mode=DeliveryMode.PERSISTENT,
                    headers=message_headers,
                ),
                routing_key=self.routing_key,
            )

    async def close(self) -> None:
        if self._connection is not None and not self._connection.is_closed:
            await self._connection.close()
            Logger.base.info('🐇 [RabbitMQ] Connection closed')
        self._connection = None
        self._channel = None
        self._exchange = None
        self._queue = None
