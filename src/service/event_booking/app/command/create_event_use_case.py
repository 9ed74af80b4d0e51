from datetime import datetime
from typing import Optional, Self

from dependency_injector.wiring import Provide, inject
from fastapi import Depends

from src.platform.config.di import Container
from src.platform.logging.loguru_io import Logger
from src.service.event_booking.app.interface.i_event_repo import IEventRepo
from src.service.event_booking.domain.entity.event_entity import Event


class CreateEventUseCase:
    def __init__(self, *, event_repo: IEventRepo) -> None:
        self.event_repo = event_repo

    @classmethod
    @inject
    def depends(cls, event_repo: IEventRepo = Depends(Provide[Container.event_repo])) -> Self:
        return cls(event_repo=event_repo)

    @Logger.io
    async def execute(
        self,
        *,
        name: str,
        start_time: datetime,
        capacity: int,
        payment_timeout_minutes: int,
        description: str = '',
        location: str = '',
        end_time: Optional[datetime] = None,
    ) -> Event:
        event = Event.create(
            name=name,
            description=description,
            start_time=start_time,
            end_time=end_time,
            location=location,
            capacity=capacity,
            payment_timeout_minutes=payment_timeout_minutes,
        )
        return await self.event_repo.create(event=event)
