from datetime import timedelta

from src.platform.logging.loguru_io import Logger
from src.platform.message_queue.rabbitmq_client import RabbitMqClient
from src.service.event_booking.app.interface.i_expiration_scheduler import IExpirationScheduler
from src.service.event_booking.domain.booking_errors import ExpirationScheduleError
from src.service.event_booking.domain.domain_event.registration_expiration_instruction import (
    RegistrationExpirationInstruction,
)


class ExpirationSchedulerImpl(IExpirationScheduler):
    def __init__(self, *, rabbitmq_client: RabbitMqClient) -> None:
        self.rabbitmq_client = rabbitmq_client

    @Logger.io
    async def schedule(
        self, *, instruction: RegistrationExpirationInstruction, delay: timedelta
    ) -> None:
        delay_ms = int(delay.total_seconds() * 1000)
        try:
            await self.rabbitmq_client.publish_delayed(
                body=instruction.to_json(),
                delay_ms=delay_ms,
                headers={'registration_id': instruction.registration_id},
            )
        except Exception as e:
            raise ExpirationScheduleError(
                f'Failed to schedule expiration for registration {instruction.registration_id}: {e}'
            ) from e

        Logger.base.info(
            f'⏰ [SCHEDULER] Expiration for registration {instruction.registration_id} '
            f'scheduled in {delay_ms}ms'
        )
