"""
Expiration Worker - RabbitMQ consumer for delayed expiration instructions

Per message:
- undecodable payload           -> reject (no requeue), never retried
- registration already terminal -> ack (no-op)
- registration unknown          -> reject (no requeue)
- store failure                 -> nack with requeue, redelivered later
- canceled                      -> best-effort notification, ack
- ack/nack/reject itself fails  -> logged and counted, left to broker redelivery

Manual acknowledgement, broker prefetch plus an anyio CapacityLimiter bound
the number of handlers in flight. stop() cancels the subscription first and
returns only after in-flight handlers have finished.
"""

from typing import TYPE_CHECKING, Any, Literal, Optional

import anyio
from aio_pika.abc import AbstractIncomingMessage, AbstractQueueIterator
from opentelemetry import trace

from src.platform.message_queue.rabbitmq_client import RabbitMqClient
from src.platform.metrics.booking_metrics import metrics
from src.platform.observability.tracing import annotate_booking, extract_trace_context
from src.service.event_booking.app.command.expire_registration_use_case import (
    ExpireRegistrationUseCase,
)
from src.service.event_booking.domain.booking_errors import (
    InstructionDecodeError,
    RegistrationNotFoundError,
)
from src.service.event_booking.domain.domain_event.registration_expiration_instruction import (
    RegistrationExpirationInstruction,
)


if TYPE_CHECKING:
    from loguru import Logger as LoguruLogger


class ExpirationMqConsumer:
    def __init__(
        self,
        *,
        rabbitmq_client: RabbitMqClient,
        expire_registration_use_case: ExpireRegistrationUseCase,
        logger: 'LoguruLogger',
        max_concurrency: int = 10,
    ) -> None:
        self.rabbitmq_client = rabbitmq_client
        self.expire_registration_use_case = expire_registration_use_case
        self.logger = logger
        self.max_concurrency = max_concurrency
        self._limiter: Optional[anyio.CapacityLimiter] = None
        self._queue_iter: Optional[AbstractQueueIterator] = None
        self._stopped: Optional[anyio.Event] = None
        self._tracer = trace.get_tracer(__name__)

    @property
    def limiter(self) -> anyio.CapacityLimiter:
        if self._limiter is None:
            self._limiter = anyio.CapacityLimiter(self.max_concurrency)
        return self._limiter

    async def start(self) -> None:
        """Consume until stop() is called; blocks the calling task."""
        self._stopped = anyio.Event()
        queue = self.rabbitmq_client.queue
        self.logger.info(
            f'🚀 [EXPIRATION WORKER] Consuming {queue.name} '
            f'(max concurrency={self.max_concurrency})'
        )
        try:
            async with anyio.create_task_group() as tg:
                async with queue.iterator() as queue_iter:
                    self._queue_iter = queue_iter
                    async for message in queue_iter:
                        tg.start_soon(self.handle_message, message)
                # Leaving the task group waits for in-flight handlers
        finally:
            self._queue_iter = None
            self._stopped.set()
            self.logger.info('🛑 [EXPIRATION WORKER] Subscription closed, handlers drained')

    async def stop(self) -> None:
        """Stop accepting deliveries, then wait for in-flight handlers."""
        if self._queue_iter is not None:
            await self._queue_iter.close()
        if self._stopped is not None:
            await self._stopped.wait()

    async def handle_message(self, message: AbstractIncomingMessage) -> None:
        async with self.limiter:
            ctx = extract_trace_context(headers=dict(message.headers or {}))
            with self._tracer.start_as_current_span('registration.expire', context=ctx):
                await self._process(message)

    async def _process(self, message: AbstractIncomingMessage) -> None:
        try:
            instruction = RegistrationExpirationInstruction.from_json(message.body)
        except InstructionDecodeError as e:
            metrics.record_expiration(outcome='decode_error')
            self.logger.error(f'❌ [EXPIRATION WORKER] Dropping malformed instruction: {e}')
            await self._settle(message, 'reject', requeue=False)
            return

        annotate_booking(
            event_id=instruction.event_id, registration_id=instruction.registration_id
        )
        try:
            await self.expire_registration_use_case.execute(instruction=instruction)
        except RegistrationNotFoundError:
            metrics.record_expiration(outcome='not_found')
            self.logger.error(
                f'❌ [EXPIRATION WORKER] Registration {instruction.registration_id} '
                f'does not exist, dropping instruction'
            )
            await self._settle(message, 'reject', requeue=False)
            return
        except Exception as e:
            metrics.record_expiration(outcome='requeued')
            self.logger.opt(exception=e).error(
                f'🔁 [EXPIRATION WORKER] Registration {instruction.registration_id} '
                f'not processed, requeueing: {type(e).__name__}'
            )
            await self._settle(message, 'nack', requeue=True)
            return

        await self._settle(message, 'ack')

    async def _settle(
        self,
        message: AbstractIncomingMessage,
        action: Literal['ack', 'nack', 'reject'],
        **kwargs: Any,
    ) -> None:
        # Unsettled deliveries are redelivered by the broker once the channel is gone
        try:
            await getattr(message, action)(**kwargs)
        except Exception as e:
            metrics.record_expiration(outcome='settle_failed')
            self.logger.warning(
                f'⚠️ [EXPIRATION WORKER] {action} failed, leaving message to redelivery: '
                f'{type(e).__name__}: {e}'
            )
