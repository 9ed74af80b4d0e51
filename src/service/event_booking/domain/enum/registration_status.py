from enum import StrEnum


class RegistrationStatus(StrEnum):
    """
    pending -> confirmed   (attendee confirms within the payment timeout)
    pending -> canceled    (expiration worker, only while still pending)
    confirmed / canceled are terminal
    """

    PENDING = 'pending'
    CONFIRMED = 'confirmed'
    CANCELED = 'canceled'

    @property
    def is_terminal(self) -> bool:
        return self is not RegistrationStatus.PENDING

    @property
    def is_active(self) -> bool:
        """Active registrations count against event capacity."""
        return self is not RegistrationStatus.CANCELED
