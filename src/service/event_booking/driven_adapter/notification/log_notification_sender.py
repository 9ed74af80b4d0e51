from typing import TYPE_CHECKING, List

from src.service.event_booking.app.interface.i_notification_sender import INotificationSender
from src.service.event_booking.domain.enum.registration_status import RegistrationStatus
from src.service.event_booking.driven_adapter.notification.notification_template import (
    NotificationMessage,
    render_notification,
)


if TYPE_CHECKING:
    from loguru import Logger as LoguruLogger


class LogNotificationSender(INotificationSender):
    """Writes notifications to the log instead of mailing them (NOTIFICATION_BACKEND=log)."""

    def __init__(self, *, logger: 'LoguruLogger') -> None:
        self.logger = logger
        self.sent: List[tuple[str, NotificationMessage]] = []

    async def send(
        self,
        *,
        event_name: str,
        status: RegistrationStatus,
        recipient_email: str,
        timeout_minutes: int,
    ) -> None:
        message = render_notification(
            event_name=event_name, status=status, timeout_minutes=timeout_minutes
        )
        self.sent.append((recipient_email, message))
        self.logger.info(f'📧 [NOTIFY] {status.value} -> {recipient_email}: {message.subject}')
