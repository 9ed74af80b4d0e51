from typing import TYPE_CHECKING

from src.platform.logging.loguru_io import Logger
from src.platform.metrics.booking_metrics import metrics
from src.service.event_booking.app.interface.i_registration_repo import IRegistrationRepo
from src.service.event_booking.app.service.attendee_notifier import AttendeeNotifier
from src.service.event_booking.domain.domain_event.registration_expiration_instruction import (
    RegistrationExpirationInstruction,
)
from src.service.event_booking.domain.enum.registration_status import RegistrationStatus


if TYPE_CHECKING:
    from loguru import Logger as LoguruLogger


class ExpireRegistrationUseCase:
    """
    Release an unconfirmed hold once its payment timeout has elapsed.

    Idempotent: a redelivered or late instruction for a registration that is
    already confirmed or canceled changes nothing and sends nothing.

    Store errors (RegistrationNotFoundError, TransientStoreError) propagate so the
    consumer can decide between reject and requeue; anything after the cancel
    commits is best-effort.
    """

    def __init__(
        self,
        *,
        registration_repo: IRegistrationRepo,
        attendee_notifier: AttendeeNotifier,
        logger: 'LoguruLogger',
    ) -> None:
        self.registration_repo = registration_repo
        self.attendee_notifier = attendee_notifier
        self.logger = logger

    @Logger.io
    async def execute(self, *, instruction: RegistrationExpirationInstruction) -> bool:
        registration_id = instruction.registration_id
        canceled = await self.registration_repo.cancel_if_pending(registration_id=registration_id)
        if not canceled:
            metrics.record_expiration(outcome='noop')
            self.logger.debug(f'⏭️ [EXPIRE] Registration {registration_id} already terminal')
            return False

        metrics.record_expiration(outcome='canceled')
        self.logger.info(f'⌛ [EXPIRE] Registration {registration_id} canceled (not confirmed)')

        try:
            registration = await self.registration_repo.get_by_id(registration_id=registration_id)
        except Exception as e:
            self.logger.warning(
                f'⚠️ [EXPIRE] Canceled registration {registration_id} '
                f'could not be reloaded: {e}'
            )
            return True
        if registration is None:
            self.logger.warning(f'⚠️ [EXPIRE] Canceled registration {registration_id} vanished')
            return True

        await self.attendee_notifier.notify(
            registration=registration, status=RegistrationStatus.CANCELED
        )
        return True
