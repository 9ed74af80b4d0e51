from datetime import datetime, timezone
from typing import Optional

import attrs

from src.platform.logging.loguru_io import Logger
from src.service.event_booking.domain.booking_errors import (
    AlreadyCanceledError,
    AlreadyConfirmedError,
)
from src.service.event_booking.domain.entity.event_entity import ensure_utc
from src.service.event_booking.domain.enum.registration_status import RegistrationStatus
from src.service.event_booking.domain.value_object.attendee import Attendee


@attrs.define
class Registration:
    event_id: int
    full_name: str
    email: str
    phone: str
    status: RegistrationStatus = attrs.field(
        default=RegistrationStatus.PENDING, converter=RegistrationStatus
    )
    id: Optional[int] = None
    created_at: Optional[datetime] = attrs.field(default=None, converter=ensure_utc)
    updated_at: Optional[datetime] = attrs.field(default=None, converter=ensure_utc)

    @classmethod
    @Logger.io
    def create(cls, *, event_id: int, attendee: Attendee) -> 'Registration':
        now = datetime.now(timezone.utc)
        return cls(
            event_id=event_id,
            full_name=attendee.full_name,
            email=attendee.email,
            phone=attendee.phone,
            status=RegistrationStatus.PENDING,
            created_at=now,
            updated_at=now,
        )

    @property
    def is_active(self) -> bool:
        return self.status.is_active

    def ensure_pending(self) -> None:
        if self.status == RegistrationStatus.CONFIRMED:
            raise AlreadyConfirmedError()
        if self.status == RegistrationStatus.CANCELED:
            raise AlreadyCanceledError()

    def confirm(self) -> 'Registration':
        self.ensure_pending()
        return attrs.evolve(
            self, status=RegistrationStatus.CONFIRMED, updated_at=datetime.now(timezone.utc)
        )

    def cancel(self) -> 'Registration':
        self.ensure_pending()
        return attrs.evolve(
            self, status=RegistrationStatus.CANCELED, updated_at=datetime.now(timezone.utc)
        )
