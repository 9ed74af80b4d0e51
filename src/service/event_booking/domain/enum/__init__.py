"""Event Booking Domain Enums"""

from src.service.event_booking.domain.enum.registration_status import RegistrationStatus

__all__ = ['RegistrationStatus']
