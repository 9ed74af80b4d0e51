from typing import TYPE_CHECKING, Any, Self

from dependency_injector.wiring import Provide, inject
from fastapi import Depends

from src.platform.config.core_setting import Settings
from src.platform.config.di import Container
from src.platform.database.transient_retry import retry_transient
from src.platform.logging.loguru_io import Logger
from src.platform.metrics.booking_metrics import metrics
from src.service.event_booking.app.interface.i_event_repo import IEventRepo
from src.service.event_booking.app.interface.i_registration_repo import IRegistrationRepo
from src.service.event_booking.app.service.attendee_notifier import AttendeeNotifier
from src.service.event_booking.domain.booking_errors import (
    AlreadyCanceledError,
    AlreadyConfirmedError,
    EmailMismatchError,
    EventNotFoundError,
    RegistrationNotFoundError,
    RegistrationStateConflictError,
)
from src.service.event_booking.domain.entity.registration_entity import Registration
from src.service.event_booking.domain.enum.registration_status import RegistrationStatus


if TYPE_CHECKING:
    from loguru import Logger as LoguruLogger


class ConfirmRegistrationUseCase:
    def __init__(
        self,
        *,
        event_repo: IEventRepo,
        registration_repo: IRegistrationRepo,
        attendee_notifier: AttendeeNotifier,
        logger: 'LoguruLogger',
        transient_retry_attempts: int = 3,
    ) -> None:
        self.event_repo = event_repo
        self.registration_repo = registration_repo
        self.attendee_notifier = attendee_notifier
        self.logger = logger
        self.transient_retry_attempts = transient_retry_attempts

    @classmethod
    @inject
    def depends(
        cls,
        event_repo: IEventRepo = Depends(Provide[Container.event_repo]),
        registration_repo: IRegistrationRepo = Depends(Provide[Container.registration_repo]),
        attendee_notifier: AttendeeNotifier = Depends(Provide[Container.attendee_notifier]),
        logger: Any = Depends(Provide[Container.booking_logger]),
        config: Settings = Depends(Provide[Container.config_service]),
    ) -> Self:
        return cls(
            event_repo=event_repo,
            registration_repo=registration_repo,
            attendee_notifier=attendee_notifier,
            logger=logger,
            transient_retry_attempts=config.STORE_TRANSIENT_RETRY_ATTEMPTS,
        )

    @Logger.io
    async def execute(self, *, event_id: int, registration_id: int, email: str) -> Registration:
        event = await self.event_repo.get_by_id(event_id=event_id)
        if not event:
            raise EventNotFoundError()

        registration = await self.registration_repo.get_by_id(registration_id=registration_id)
        if not registration or registration.event_id != event_id:
            raise RegistrationNotFoundError()
        if registration.email != email:
            raise EmailMismatchError()

        attempts_made = 0

        async def confirm_once() -> None:
            nonlocal attempts_made
            attempts_made += 1
            await self.registration_repo.confirm(registration_id=registration_id)

        try:
            registration.ensure_pending()
            await retry_transient(
                confirm_once,
                attempts=self.transient_retry_attempts,
                logger=self.logger,
                label=f'confirm(registration={registration_id})',
            )
        except RegistrationStateConflictError as e:
            if not (attempts_made > 1 and e.observed_status == RegistrationStatus.CONFIRMED):
                # Lost the race (usually to the expiration worker)
                metrics.record_confirmation(result=f'lost_to_{e.observed_status or "missing"}')
                if e.observed_status == RegistrationStatus.CONFIRMED:
                    raise AlreadyConfirmedError() from e
                if e.observed_status == RegistrationStatus.CANCELED:
                    raise AlreadyCanceledError() from e
                raise RegistrationNotFoundError() from e
            # An earlier attempt committed but its connection failed before reporting it
            self.logger.warning(
                f'⚠️ [CONFIRM] Registration {registration_id} found confirmed on retry '
                f'{attempts_made}, treating the earlier attempt as committed'
            )
        except (AlreadyConfirmedError, AlreadyCanceledError) as e:
            metrics.record_confirmation(result=e.code.lower())
            raise

        metrics.record_confirmation(result='confirmed')
        confirmed = registration.confirm()
        self.logger.info(f'✅ [CONFIRM] Registration {registration_id} confirmed')

        await self.attendee_notifier.notify(
            registration=confirmed, status=RegistrationStatus.CONFIRMED, event=event
        )
        return confirmed
