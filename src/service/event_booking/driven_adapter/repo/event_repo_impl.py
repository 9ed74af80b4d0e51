from typing import List, Optional

from sqlalchemy import select

from src.platform.logging.loguru_io import Logger
from src.service.event_booking.app.interface.i_event_repo import IEventRepo
from src.service.event_booking.domain.entity.event_entity import Event
from src.service.event_booking.driven_adapter.model.event_model import EventModel
from src.service.event_booking.driven_adapter.repo.sql_transaction import SqlRepoBase


class EventRepoImpl(SqlRepoBase, IEventRepo):
    @staticmethod
    def _to_entity(db_event: EventModel) -> Event:
        return Event(
            id=db_event.id,
            name=db_event.name,
            description=db_event.description,
            start_time=db_event.start_time,
            end_time=db_event.end_time,
            location=db_event.location,
            capacity=db_event.capacity,
            payment_timeout_minutes=db_event.payment_timeout_minutes,
            created_at=db_event.created_at,
            updated_at=db_event.updated_at,
        )

    @Logger.io
    async def create(self, *, event: Event) -> Event:
        async with self._transaction() as session:
            db_event = EventModel(
                name=event.name,
                description=event.description,
                start_time=event.start_time,
                end_time=event.end_time,
                location=event.location,
                capacity=event.capacity,
                payment_timeout_minutes=event.payment_timeout_minutes,
            )
            session.add(db_event)
            await session.flush()
            created = self._to_entity(db_event)
        Logger.base.info(f'🎪 [EVENT] Created event {created.id} (capacity={created.capacity})')
        return created

    @Logger.io
    async def get_by_id(self, *, event_id: int) -> Optional[Event]:
        async with self._read_session() as session:
            db_event = await session.get(EventModel, event_id)
            return self._to_entity(db_event) if db_event else None

    @Logger.io
    async def list_all(self) -> List[Event]:
        async with self._read_session() as session:
            result = await session.execute(
                select(EventModel).order_by(EventModel.created_at.desc(), EventModel.id.desc())
            )
            return [self._to_entity(db_event) for db_event in result.scalars().all()]
