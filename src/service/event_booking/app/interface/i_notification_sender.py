from abc import ABC, abstractmethod

from src.service.event_booking.domain.enum.registration_status import RegistrationStatus


class INotificationSender(ABC):
    @abstractmethod
    async def send(
        self,
        *,
        event_name: str,
        status: RegistrationStatus,
        recipient_email: str,
        timeout_minutes: int,
    ) -> None:
        """
        Tell the attendee about a status change.

        Raises:
            NotificationDeliveryError
        """
        pass
