from typing import Self

from dependency_injector.wiring import Provide, inject
from fastapi import Depends

from src.platform.config.di import Container
from src.platform.logging.loguru_io import Logger
from src.service.event_booking.app.interface.i_event_repo import IEventRepo
from src.service.event_booking.app.interface.i_registration_repo import IRegistrationRepo
from src.service.event_booking.domain.booking_errors import EventNotFoundError
from src.service.event_booking.domain.value_object.event_info import EventInfo


class GetEventUseCase:
    def __init__(self, *, event_repo: IEventRepo, registration_repo: IRegistrationRepo) -> None:
        self.event_repo = event_repo
        self.registration_repo = registration_repo

    @classmethod
    @inject
    def depends(
        cls,
        event_repo: IEventRepo = Depends(Provide[Container.event_repo]),
        registration_repo: IRegistrationRepo = Depends(Provide[Container.registration_repo]),
    ) -> Self:
        return cls(event_repo=event_repo, registration_repo=registration_repo)

    @Logger.io
    async def execute(self, *, event_id: int, admin: bool = False) -> EventInfo:
        """Event with available seats; the admin view also lists active registrations."""
        event = await self.event_repo.get_by_id(event_id=event_id)
        if not event:
            raise EventNotFoundError()

        if admin:
            registrations = await self.registration_repo.list_active(event_id=event_id)
            return EventInfo.build(
                event=event, active_count=len(registrations), registrations=registrations
            )

        active_count = await self.registration_repo.count_active(event_id=event_id)
        return EventInfo.build(event=event, active_count=active_count)
