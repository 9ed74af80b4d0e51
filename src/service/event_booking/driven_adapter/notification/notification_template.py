"""Subjects and bodies of the three attendee emails."""

import attrs

from src.service.event_booking.domain.enum.registration_status import RegistrationStatus


@attrs.frozen
class NotificationMessage:
    subject: str
    body: str


def render_notification(
    *, event_name: str, status: RegistrationStatus, timeout_minutes: int
) -> NotificationMessage:
    if status == RegistrationStatus.PENDING:
        return NotificationMessage(
            subject=f'Registration received: {event_name}',
            body=(
                f'Thank you for registering for {event_name}.\n\n'
                f'Your seat is on hold. Please confirm your registration within '
                f'{timeout_minutes} minutes, otherwise it will be released automatically.'
            ),
        )
    if status == RegistrationStatus.CONFIRMED:
        return NotificationMessage(
            subject=f'Registration confirmed: {event_name}',
            body=f'Your registration for {event_name} is confirmed. See you there!',
        )
    return NotificationMessage(
        subject=f'Registration canceled: {event_name}',
        body=(
            f'Your registration for {event_name} was canceled because it was not confirmed '
            f'within {timeout_minutes} minutes. You are welcome to book again if seats remain.'
        ),
    )
