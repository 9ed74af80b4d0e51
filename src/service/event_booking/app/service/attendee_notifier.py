"""
Best-effort attendee notifications.

A notification never decides the outcome of a booking, confirmation or
expiration: missing context skips it, delivery failures are logged.
"""

from typing import TYPE_CHECKING, Optional

from src.platform.metrics.booking_metrics import metrics
from src.service.event_booking.app.interface.i_event_repo import IEventRepo
from src.service.event_booking.app.interface.i_notification_sender import INotificationSender
from src.service.event_booking.domain.booking_errors import NotificationDeliveryError
from src.service.event_booking.domain.entity.event_entity import Event
from src.service.event_booking.domain.entity.registration_entity import Registration
from src.service.event_booking.domain.enum.registration_status import RegistrationStatus


if TYPE_CHECKING:
    from loguru import Logger as LoguruLogger


class AttendeeNotifier:
    def __init__(
        self,
        *,
        notification_sender: INotificationSender,
        event_repo: IEventRepo,
        logger: 'LoguruLogger',
    ) -> None:
        self.notification_sender = notification_sender
        self.event_repo = event_repo
        self.logger = logger

    async def _load_event(self, *, event_id: int) -> Optional[Event]:
        try:
            return await self.event_repo.get_by_id(event_id=event_id)
        except Exception as e:
            self.logger.warning(f'⚠️ [NOTIFY] Could not load event {event_id}: {e}')
            return None

    async def notify(
        self,
        *,
        registration: Registration,
        status: RegistrationStatus,
        event: Optional[Event] = None,
    ) -> bool:
        """Returns True if the sender accepted the notification."""
        if event is None:
            event = await self._load_event(event_id=registration.event_id)
        if event is None:
            self.logger.warning(
                f'⚠️ [NOTIFY] Skipping {status.value} notification for registration '
                f'{registration.id}: event {registration.event_id} unavailable'
            )
            return False

        try:
            await self.notification_sender.send(
                event_name=event.name,
                status=status,
                recipient_email=registration.email,
                timeout_minutes=event.payment_timeout_minutes,
            )
        except NotificationDeliveryError as e:
            metrics.record_notification_failure(status=status.value)
            self.logger.error(f'❌ [NOTIFY] {e}')
            return False
        except Exception as e:
            metrics.record_notification_failure(status=status.value)
            self.logger.opt(exception=e).error(
                f'❌ [NOTIFY] Unexpected {type(e).__name__} sending {status.value} '
                f'notification for registration {registration.id}'
            )
            return False
        return True
