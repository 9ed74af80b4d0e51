"""
Process-local event + registration store (STORAGE_BACKEND=memory).

Same contracts as the SQL repositories. A lock per event serializes admission
for that event and a lock per registration serializes its status transitions,
mirroring the row locks the SQL store takes. Entities are copied on the way
in and out so callers never hold a reference to stored state.
"""

from datetime import datetime, timezone
from itertools import count
from typing import Dict, List, Optional

import anyio
import attrs

from src.platform.logging.loguru_io import Logger
from src.service.event_booking.app.interface.i_event_repo import IEventRepo
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
from src.service.event_booking.domain.entity.event_entity import Event
from src.service.event_booking.domain.entity.registration_entity import Registration
from src.service.event_booking.domain.enum.registration_status import RegistrationStatus
from src.service.event_booking.domain.value_object.attendee import Attendee


class InMemoryBookingState:
    """Shared tables for the two in-memory repositories."""

    def __init__(self) -> None:
        self.events: Dict[int, Event] = {}
        self.registrations: Dict[int, Registration] = {}
        # Created with their row; unknown ids never get a lock
        self.event_locks: Dict[int, anyio.Lock] = {}
        self.registration_locks: Dict[int, anyio.Lock] = {}
        self._event_ids = count(1)
        self._registration_ids = count(1)

    def next_event_id(self) -> int:
        return next(self._event_ids)

    def next_registration_id(self) -> int:
        return next(self._registration_ids)

    def registrations_of(self, event_id: int) -> List[Registration]:
        return [r for r in self.registrations.values() if r.event_id == event_id]


class InMemoryEventRepo(IEventRepo):
    def __init__(self, *, state: InMemoryBookingState) -> None:
        self.state = state

    @Logger.io
    async def create(self, *, event: Event) -> Event:
        now = datetime.now(timezone.utc)
        stored = attrs.evolve(
            event,
            id=self.state.next_event_id(),
            created_at=event.created_at or now,
            updated_at=event.updated_at or now,
        )
        self.state.event_locks[stored.id] = anyio.Lock()  # type: ignore[index]
        self.state.events[stored.id] = stored  # type: ignore[index]
        return attrs.evolve(stored)

    @Logger.io
    async def get_by_id(self, *, event_id: int) -> Optional[Event]:
        event = self.state.events.get(event_id)
        return attrs.evolve(event) if event else None

    @Logger.io
    async def list_all(self) -> List[Event]:
        events = sorted(
            self.state.events.values(),
            key=lambda e: (e.created_at or datetime.min.replace(tzinfo=timezone.utc), e.id or 0),
            reverse=True,
        )
        return [attrs.evolve(event) for event in events]


class InMemoryRegistrationRepo(IRegistrationRepo):
    def __init__(self, *, state: InMemoryBookingState) -> None:
        self.state = state

    @Logger.io
    async def admit_booking(self, *, event_id: int, attendee: Attendee) -> Admission:
        lock = self.state.event_locks.get(event_id)
        if lock is None:
            raise EventNotFoundError()

        async with lock:
            event = self.state.events[event_id]
            existing = self.state.registrations_of(event_id)
            if sum(1 for r in existing if r.is_active) >= event.capacity:
                raise EventFullError()
            if any(r.email == attendee.email and r.is_active for r in existing):
                raise DuplicateRegistrationError()

            registration = attrs.evolve(
                Registration.create(event_id=event_id, attendee=attendee),
                id=self.state.next_registration_id(),
            )
            self.state.registration_locks[registration.id] = anyio.Lock()  # type: ignore[index]
            self.state.registrations[registration.id] = registration  # type: ignore[index]

        return Admission(
            registration=attrs.evolve(registration),
            payment_timeout_minutes=event.payment_timeout_minutes,
        )

    @Logger.io
    async def confirm(self, *, registration_id: int) -> None:
        lock = self.state.registration_locks.get(registration_id)
        if lock is None:
            raise RegistrationStateConflictError(
                registration_id=registration_id, observed_status=None
            )

        async with lock:
            current = self.state.registrations.get(registration_id)
            if current is None or current.status != RegistrationStatus.PENDING:
                raise RegistrationStateConflictError(
                    registration_id=registration_id,
                    observed_status=current.status.value if current else None,
                )
            self.state.registrations[registration_id] = current.confirm()

    @Logger.io
    async def cancel_if_pending(self, *, registration_id: int) -> bool:
        lock = self.state.registration_locks.get(registration_id)
        if lock is None:
            raise RegistrationNotFoundError()

        async with lock:
            current = self.state.registrations[registration_id]
            if current.status != RegistrationStatus.PENDING:
                return False
            self.state.registrations[registration_id] = current.cancel()
            return True

    @Logger.io
    async def get_by_id(self, *, registration_id: int) -> Optional[Registration]:
        registration = self.state.registrations.get(registration_id)
        return attrs.evolve(registration) if registration else None

    @Logger.io
    async def count_active(self, *, event_id: int) -> int:
        return sum(1 for r in self.state.registrations_of(event_id) if r.is_active)

    @Logger.io
    async def list_active(self, *, event_id: int) -> List[Registration]:
        active = [r for r in self.state.registrations_of(event_id) if r.is_active]
        active.sort(key=lambda r: r.id or 0)
        return [attrs.evolve(r) for r in active]
