"""
Wire Modules Configuration

Defines the modules that need dependency injection wiring.
Shared between production and test environments.
"""

from types import ModuleType

from src.service.event_booking.app.command import (
    book_registration_use_case,
    confirm_registration_use_case,
    create_event_use_case,
)
from src.service.event_booking.app.query import get_event_use_case, list_events_use_case


WIRE_MODULES: list[ModuleType] = [
    create_event_use_case,
    book_registration_use_case,
    confirm_registration_use_case,
    get_event_use_case,
    list_events_use_case,
]
