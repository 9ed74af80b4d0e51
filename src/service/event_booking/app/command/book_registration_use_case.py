from datetime import timedelta
import time
from typing import TYPE_CHECKING, Any, Self

from dependency_injector.wiring import Provide, inject
from fastapi import Depends

from src.platform.config.core_setting import Settings
from src.platform.config.di import Container
from src.platform.database.transient_retry import retry_transient
from src.platform.exception.exceptions import CustomBaseError
from src.platform.logging.loguru_io import Logger
from src.platform.metrics.booking_metrics import metrics
from src.platform.observability.tracing import annotate_booking
from src.service.event_booking.app.interface.i_expiration_scheduler import IExpirationScheduler
from src.service.event_booking.app.interface.i_registration_repo import IRegistrationRepo
from src.service.event_booking.app.service.attendee_notifier import AttendeeNotifier
from src.service.event_booking.domain.booking_errors import ExpirationScheduleError
from src.service.event_booking.domain.domain_event.registration_expiration_instruction import (
    RegistrationExpirationInstruction,
)
from src.service.event_booking.domain.entity.registration_entity import Registration
from src.service.event_booking.domain.enum.registration_status import RegistrationStatus
from src.service.event_booking.domain.value_object.attendee import Attendee


if TYPE_CHECKING:
    from loguru import Logger as LoguruLogger


class BookRegistrationUseCase:
    """
    Hold a seat for an attendee.

    Flow:
    1. Admit in one store transaction (event row lock -> capacity -> duplicate -> insert pending)
    2. Schedule the delayed expiration instruction (failure is logged, booking stands)
    3. After commit, send the "pending" notification with the payment timeout
    """

    def __init__(
        self,
        *,
        registration_repo: IRegistrationRepo,
        expiration_scheduler: IExpirationScheduler,
        attendee_notifier: AttendeeNotifier,
        logger: 'LoguruLogger',
        transient_retry_attempts: int = 3,
    ) -> None:
        self.registration_repo = registration_repo
        self.expiration_scheduler = expiration_scheduler
        self.attendee_notifier = attendee_notifier
        self.logger = logger
        self.transient_retry_attempts = transient_retry_attempts

    @classmethod
    @inject
    def depends(
        cls,
        registration_repo: IRegistrationRepo = Depends(Provide[Container.registration_repo]),
        expiration_scheduler: IExpirationScheduler = Depends(
            Provide[Container.expiration_scheduler]
        ),
        attendee_notifier: AttendeeNotifier = Depends(Provide[Container.attendee_notifier]),
        logger: Any = Depends(Provide[Container.booking_logger]),
        config: Settings = Depends(Provide[Container.config_service]),
    ) -> Self:
        return cls(
            registration_repo=registration_repo,
            expiration_scheduler=expiration_scheduler,
            attendee_notifier=attendee_notifier,
            logger=logger,
            transient_retry_attempts=config.STORE_TRANSIENT_RETRY_ATTEMPTS,
        )

    @Logger.io
    async def execute(self, *, event_id: int, attendee: Attendee) -> Registration:
        started = time.perf_counter()
        try:
            admission = await retry_transient(
                lambda: self.registration_repo.admit_booking(event_id=event_id, attendee=attendee),
                attempts=self.transient_retry_attempts,
                logger=self.logger,
                label=f'admit_booking(event={event_id})',
            )
        except CustomBaseError as e:
            metrics.record_admission(result=e.code.lower(), duration=time.perf_counter() - started)
            raise
        metrics.record_admission(result='admitted', duration=time.perf_counter() - started)

        registration = admission.registration
        assert registration.id is not None
        annotate_booking(event_id=event_id, registration_id=registration.id)
        self.logger.info(
            f'🎟️ [BOOKING] Registration {registration.id} admitted for event {event_id}, '
            f'hold expires in {admission.payment_timeout_minutes}m'
        )

        instruction = RegistrationExpirationInstruction.for_registration(
            registration_id=registration.id,
            event_id=event_id,
            timeout_minutes=admission.payment_timeout_minutes,
        )
        try:
            await self.expiration_scheduler.schedule(
                instruction=instruction,
                delay=timedelta(minutes=admission.payment_timeout_minutes),
            )
        except ExpirationScheduleError as e:
            # Degraded: the hold stays pending until someone confirms it
            metrics.record_schedule_failure()
            self.logger.warning(
                f'⚠️ [BOOKING] Registration {registration.id} has no scheduled expiration: {e}'
            )

        await self.attendee_notifier.notify(
            registration=registration, status=RegistrationStatus.PENDING
        )
        return registration
