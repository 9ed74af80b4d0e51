from email.mime.text import MIMEText
import smtplib
from typing import TYPE_CHECKING

from anyio import to_thread

from src.service.event_booking.app.interface.i_notification_sender import INotificationSender
from src.service.event_booking.domain.booking_errors import NotificationDeliveryError
from src.service.event_booking.domain.enum.registration_status import RegistrationStatus
from src.service.event_booking.driven_adapter.notification.notification_template import (
    render_notification,
)


if TYPE_CHECKING:
    from loguru import Logger as LoguruLogger


class SmtpNotificationSender(INotificationSender):
    def __init__(
        self,
        *,
        host: str,
        port: int,
        username: str,
        password: str,
        sender: str,
        use_tls: bool,
        timeout: float,
        logger: 'LoguruLogger',
    ) -> None:
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.sender = sender
        self.use_tls = use_tls
        self.timeout = timeout
        self.logger = logger

    def _deliver(self, msg: MIMEText) -> None:
        with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as server:
            if self.use_tls:
                server.starttls()
            if self.username:
                server.login(self.username, self.password)
            server.send_message(msg)

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
        msg = MIMEText(message.body, 'plain', 'utf-8')
        msg['Subject'] = message.subject
        msg['From'] = self.sender
        msg['To'] = recipient_email

        try:
            # smtplib blocks; keep it off the event loop
            await to_thread.run_sync(self._deliver, msg)
        except (smtplib.SMTPException, OSError) as e:
            raise NotificationDeliveryError(
                f'Failed to send {status.value} email to {recipient_email}: {e}'
            ) from e

        self.logger.info(f'📧 [NOTIFY] {status.value} email sent to {recipient_email}')
