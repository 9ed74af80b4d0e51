from datetime import datetime, timezone
from typing import Optional

import attrs

from src.platform.logging.loguru_io import Logger


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    """SQLite hands back naive datetimes; treat them as UTC."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


def _validate_non_empty_string(instance: object, attribute: attrs.Attribute, value: str) -> None:
    if not value or not value.strip():
        raise ValueError(f'Event {attribute.name} cannot be empty')


def _validate_capacity(instance: object, attribute: attrs.Attribute, value: int) -> None:
    if value <= 0:
        raise ValueError('Event capacity must be greater than 0')


def _validate_payment_timeout(instance: object, attribute: attrs.Attribute, value: int) -> None:
    if value < 1:
        raise ValueError('Event payment_timeout_minutes must be at least 1')


@attrs.define
class Event:
    name: str = attrs.field(validator=_validate_non_empty_string)
    start_time: datetime = attrs.field(converter=ensure_utc)  # type: ignore[misc]
    capacity: int = attrs.field(validator=_validate_capacity)
    payment_timeout_minutes: int = attrs.field(validator=_validate_payment_timeout)
    description: str = ''
    location: str = ''
    end_time: Optional[datetime] = attrs.field(default=None, converter=ensure_utc)
    id: Optional[int] = None
    created_at: Optional[datetime] = attrs.field(default=None, converter=ensure_utc)
    updated_at: Optional[datetime] = attrs.field(default=None, converter=ensure_utc)

    @end_time.validator
    def _check_end_after_start(self, attribute: attrs.Attribute, value: Optional[datetime]) -> None:
        if value is not None and value < self.start_time:
            raise ValueError('Event end_time cannot be before start_time')

    @classmethod
    @Logger.io
    def create(
        cls,
        *,
        name: str,
        start_time: datetime,
        capacity: int,
        payment_timeout_minutes: int,
        description: str = '',
        location: str = '',
        end_time: Optional[datetime] = None,
    ) -> 'Event':
        now = datetime.now(timezone.utc)
        return cls(
            name=name.strip(),
            description=description or '',
            start_time=start_time,
            end_time=end_time,
            location=location or '',
            capacity=capacity,
            payment_timeout_minutes=payment_timeout_minutes,
            created_at=now,
            updated_at=now,
        )
