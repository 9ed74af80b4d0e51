from typing import List, Optional

import attrs

from src.service.event_booking.domain.entity.event_entity import Event
from src.service.event_booking.domain.entity.registration_entity import Registration


@attrs.define
class EventInfo:
    """Read model: an event, its remaining seats and (admin view only) its active roster."""

    event: Event
    available_seats: int
    registrations: Optional[List[Registration]] = None

    @classmethod
    def build(
        cls,
        *,
        event: Event,
        active_count: int,
        registrations: Optional[List[Registration]] = None,
    ) -> 'EventInfo':
        return cls(
            event=event,
            available_seats=max(event.capacity - active_count, 0),
            registrations=registrations,
        )
