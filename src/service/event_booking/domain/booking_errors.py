"""
Event booking error taxonomy.

Every error carries a stable `code` that the HTTP layer renders in the
`{"status": "error", "error": {"code", "desc"}}` envelope.
"""

from src.platform.exception.exceptions import (
    ConflictError,
    CustomBaseError,
    DomainError,
    NotFoundError,
    ServiceUnavailableError,
)


class EventNotFoundError(NotFoundError):
    default_code = 'EVENT_NOT_FOUND'

    def __init__(self, message: str = 'Event not found') -> None:
        super().__init__(message)


class RegistrationNotFoundError(NotFoundError):
    default_code = 'REGISTRATION_NOT_FOUND'

    def __init__(self, message: str = 'Registration not found') -> None:
        super().__init__(message)


class EventFullError(ConflictError):
    default_code = 'EVENT_FULL'

    def __init__(self, message: str = 'Event is fully booked') -> None:
        super().__init__(message)


class DuplicateRegistrationError(ConflictError):
    default_code = 'REGISTRATION_DUPLICATE'

    def __init__(self, message: str = 'Email is already registered for this event') -> None:
        super().__init__(message)


class EmailMismatchError(DomainError):
    default_code = 'FIELD_INCORRECT'

    def __init__(self, message: str = 'Email does not match the registration') -> None:
        super().__init__(message)


class AlreadyConfirmedError(ConflictError):
    default_code = 'ALREADY_CONFIRMED'

    def __init__(self, message: str = 'Already confirmed') -> None:
        super().__init__(message)


class AlreadyCanceledError(ConflictError):
    default_code = 'ALREADY_CANCELED'

    def __init__(self, message: str = 'Registration was canceled') -> None:
        super().__init__(message)


class RegistrationStateConflictError(ConflictError):
    """A conditional status update matched no row; `observed_status` is what the store saw."""

    default_code = 'REGISTRATION_STATE_CONFLICT'

    def __init__(self, *, registration_id: int, observed_status: str | None) -> None:
        self.registration_id = registration_id
        self.observed_status = observed_status
        super().__init__(
            f'Registration {registration_id} is not pending (observed: {observed_status})'
        )


class TransientStoreError(ServiceUnavailableError):
    """Database unreachable, serialization failure or lock timeout; safe to retry."""


class InstructionDecodeError(DomainError):
    default_code = 'INSTRUCTION_MALFORMED'


class ExpirationScheduleError(CustomBaseError):
    default_code = 'EXPIRATION_SCHEDULE_FAILED'

    def __init__(self, message: str) -> None:
        super().__init__(message, 503)


class NotificationDeliveryError(CustomBaseError):
    default_code = 'NOTIFICATION_FAILED'

    def __init__(self, message: str) -> None:
        super().__init__(message, 502)
