from typing import TYPE_CHECKING, Any, List, Self

from dependency_injector.wiring import Provide, inject
from fastapi import Depends

from src.platform.config.di import Container
from src.platform.logging.loguru_io import Logger
from src.service.event_booking.app.interface.i_event_repo import IEventRepo
from src.service.event_booking.app.interface.i_registration_repo import IRegistrationRepo
from src.service.event_booking.domain.value_object.event_info import EventInfo


if TYPE_CHECKING:
    from loguru import Logger as LoguruLogger


class ListEventsUseCase:
    def __init__(
        self,
        *,
        event_repo: IEventRepo,
        registration_repo: IRegistrationRepo,
        logger: 'LoguruLogger',
    ) -> None:
        self.event_repo = event_repo
        self.registration_repo = registration_repo
        self.logger = logger

    @classmethod
    @inject
    def depends(
        cls,
        event_repo: IEventRepo = Depends(Provide[Container.event_repo]),
        registration_repo: IRegistrationRepo = Depends(Provide[Container.registration_repo]),
        logger: Any = Depends(Provide[Container.booking_logger]),
    ) -> Self:
        return cls(event_repo=event_repo, registration_repo=registration_repo, logger=logger)

    @Logger.io
    async def execute(self, *, admin: bool = False) -> List[EventInfo]:
        """All events, newest first. An event whose seat count cannot be read is skipped."""
        result: List[EventInfo] = []
        for event in await self.event_repo.list_all():
            assert event.id is not None
            try:
                if admin:
                    registrations = await self.registration_repo.list_active(event_id=event.id)
                    info = EventInfo.build(
                        event=event, active_count=len(registrations), registrations=registrations
                    )
                else:
                    active_count = await self.registration_repo.count_active(event_id=event.id)
                    info = EventInfo.build(event=event, active_count=active_count)
            except Exception as e:
                self.logger.warning(f'⚠️ [EVENTS] Skipping event {event.id} in listing: {e}')
                continue
            result.append(info)
        return result
