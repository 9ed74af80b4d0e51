from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import func, select, update

from src.platform.logging.loguru_io import Logger
from src.service.event_booking.app.interface.i_registration_repo import (
    Admission,
    IRegistrationRepo,
)
from src.service.event_booking.domain.booking_errors import (
    DuplicateRegistrationError,
    EventFullError,
    EventNotFoundError,
    RegistrationNotFoundError,
    RegistrationStateConflictError,
)
from src.service.event_booking.domain.entity.registration_entity import Registration
from src.service.event_booking.domain.enum.registration_status import RegistrationStatus
from src.service.event_booking.domain.value_object.attendee import Attendee
from src.service.event_booking.driven_adapter.model.event_model import EventModel
from src.service.event_booking.driven_adapter.model.registration_model import RegistrationModel
from src.service.event_booking.driven_adapter.repo.sql_transaction import SqlRepoBase


ACTIVE_STATUSES = (RegistrationStatus.PENDING.value, RegistrationStatus.CONFIRMED.value)


class RegistrationRepoImpl(SqlRepoBase, IRegistrationRepo):
    """
    PostgreSQL-backed registration store.

    Admission serializes per event through `SELECT ... FOR UPDATE` on the event row,
    so the capacity count and the insert are atomic with respect to other bookings
    of the same event. Status transitions are conditional on the current status.
    """

    @staticmethod
    def _to_entity(db_registration: RegistrationModel) -> Registration:
        return Registration(
            id=db_registration.id,
            event_id=db_registration.event_id,
            full_name=db_registration.full_name,
            email=db_registration.email,
            phone=db_registration.phone,
            status=RegistrationStatus(db_registration.status),
            created_at=db_registration.created_at,
            updated_at=db_registration.updated_at,
        )

    @Logger.io
    async def admit_booking(self, *, event_id: int, attendee: Attendee) -> Admission:
        async with self._transaction() as session:
            # Row lock held until commit/rollback
            locked_event = (
                await session.execute(
                    select(EventModel.capacity, EventModel.payment_timeout_minutes)
                    .where(EventModel.id == event_id)
                    .with_for_update()
                )
            ).one_or_none()
            if locked_event is None:
                raise EventNotFoundError()
            capacity, payment_timeout_minutes = locked_event

            active_count = await session.scalar(
                select(func.count())
                .select_from(RegistrationModel)
                .where(
                    RegistrationModel.event_id == event_id,
                    RegistrationModel.status.in_(ACTIVE_STATUSES),
                )
            )
            if (active_count or 0) >= capacity:
                raise EventFullError()

            duplicate_count = await session.scalar(
                select(func.count())
                .select_from(RegistrationModel)
                .where(
                    RegistrationModel.event_id == event_id,
                    RegistrationModel.email == attendee.email,
                    RegistrationModel.status != RegistrationStatus.CANCELED.value,
                )
            )
            if duplicate_count:
                raise DuplicateRegistrationError()

            db_registration = RegistrationModel(
                event_id=event_id,
                full_name=attendee.full_name,
                email=attendee.email,
                phone=attendee.phone,
                status=RegistrationStatus.PENDING.value,
            )
            session.add(db_registration)
            await session.flush()
            registration = self._to_entity(db_registration)

        return Admission(registration=registration, payment_timeout_minutes=payment_timeout_minutes)

    @Logger.io
    async def confirm(self, *, registration_id: int) -> None:
        async with self._transaction() as session:
            result = await session.execute(
                update(RegistrationModel)
                .where(
                    RegistrationModel.id == registration_id,
                    RegistrationModel.status == RegistrationStatus.PENDING.value,
                )
                .values(
                    status=RegistrationStatus.CONFIRMED.value,
                    updated_at=datetime.now(timezone.utc),
                )
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 1:  # type: ignore[attr-defined]
                return
            observed_status = await session.scalar(
                select(RegistrationModel.status).where(RegistrationModel.id == registration_id)
            )

        raise RegistrationStateConflictError(
            registration_id=registration_id, observed_status=observed_status
        )

    @Logger.io
    async def cancel_if_pending(self, *, registration_id: int) -> bool:
        async with self._transaction() as session:
            current_status = await session.scalar(
                select(RegistrationModel.status)
                .where(RegistrationModel.id == registration_id)
                .with_for_update()
            )
            if current_status is None:
                raise RegistrationNotFoundError()
            if current_status != RegistrationStatus.PENDING.value:
                return False

            await session.execute(
                update(RegistrationModel)
                .where(RegistrationModel.id == registration_id)
                .values(
                    status=RegistrationStatus.CANCELED.value,
                    updated_at=datetime.now(timezone.utc),
                )
                .execution_options(synchronize_session=False)
            )
            return True

    @Logger.io
    async def get_by_id(self, *, registration_id: int) -> Optional[Registration]:
        async with self._read_session() as session:
            db_registration = await session.get(RegistrationModel, registration_id)
            return self._to_entity(db_registration) if db_registration else None

    @Logger.io
    async def count_active(self, *, event_id: int) -> int:
        async with self._read_session() as session:
            count = await session.scalar(
                select(func.count())
                .select_from(RegistrationModel)
                .where(
                    RegistrationModel.event_id == event_id,
                    RegistrationModel.status.in_(ACTIVE_STATUSES),
                )
            )
            return int(count or 0)

    @Logger.io
    async def list_active(self, *, event_id: int) -> List[Registration]:
        async with self._read_session() as session:
            result = await session.execute(
                select(RegistrationModel)
                .where(
                    RegistrationModel.event_id == event_id,
                    RegistrationModel.status.in_(ACTIVE_STATUSES),
                )
                .order_by(RegistrationModel.created_at.asc(), RegistrationModel.id.asc())
            )
            return [self._to_entity(row) for row in result.scalars().all()]
