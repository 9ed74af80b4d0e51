from abc import ABC, abstractmethod
from datetime import timedelta

from src.service.event_booking.domain.domain_event.registration_expiration_instruction import (
    RegistrationExpirationInstruction,
)


class IExpirationScheduler(ABC):
    @abstractmethod
    async def schedule(
        self, *, instruction: RegistrationExpirationInstruction, delay: timedelta
    ) -> None:
        """
        Arrange for `instruction` to be delivered to the expiration worker after `delay`.

        Delivery is at-least-once.

        Raises:
            ExpirationScheduleError: the broker did not accept the message
        """
        pass
