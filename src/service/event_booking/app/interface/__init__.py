"""Application layer interfaces (Ports)"""

from src.service.event_booking.app.interface.i_event_repo import IEventRepo
from src.service.event_booking.app.interface.i_expiration_scheduler import IExpirationScheduler
from src.service.event_booking.app.interface.i_notification_sender import INotificationSender
from src.service.event_booking.app.interface.i_registration_repo import (
    Admission,
    IRegistrationRepo,
)

__all__ = [
    'Admission',
    'IEventRepo',
    'IExpirationScheduler',
    'INotificationSender',
    'IRegistrationRepo',
]
