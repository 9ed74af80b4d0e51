from abc import ABC, abstractmethod
from typing import List, Optional

import attrs

from src.service.event_booking.domain.entity.registration_entity import Registration
from src.service.event_booking.domain.value_object.attendee import Attendee


@attrs.frozen
class Admission:
    registration: Registration
    payment_timeout_minutes: int


class IRegistrationRepo(ABC):
    """
    Registration store: the only place capacity, uniqueness and status transitions are enforced.

    Every write runs in its own transaction; any failure rolls the whole unit back.
    Infrastructure failures surface as TransientStoreError.
    """

    @abstractmethod
    async def admit_booking(self, *, event_id: int, attendee: Attendee) -> Admission:
        """
        Lock the event, check capacity and (event, email) uniqueness, insert a pending row.

        Raises:
            EventNotFoundError, EventFullError, DuplicateRegistrationError, TransientStoreError
        """
        pass

    @abstractmethod
    async def confirm(self, *, registration_id: int) -> None:
        """
        Compare-and-swap pending -> confirmed.

        Raises:
            RegistrationStateConflictError: row missing or no longer pending
        """
        pass

    @abstractmethod
    async def cancel_if_pending(self, *, registration_id: int) -> bool:
        """
        Lock the registration; cancel it only while pending.

        Returns:
            True if this call canceled it, False if it was already terminal (no write)

        Raises:
            RegistrationNotFoundError
        """
        pass

    @abstractmethod
    async def get_by_id(self, *, registration_id: int) -> Optional[Registration]:
        pass

    @abstractmethod
    async def count_active(self, *, event_id: int) -> int:
        """pending + confirmed"""
        pass

    @abstractmethod
    async def list_active(self, *, event_id: int) -> List[Registration]:
        """pending + confirmed, oldest first"""
        pass
