"""
Delayed expiration instruction

Published when a registration is admitted and delivered back after the event's
payment timeout. Wire format (UTF-8 JSON)::

    {"registration_id": 1, "event_id": 2, "expire_at": "2026-10-19T12:00:00Z"}
"""

from datetime import datetime, timedelta, timezone

import attrs
import orjson

from src.service.event_booking.domain.booking_errors import InstructionDecodeError


def _format_rfc3339(value: datetime) -> str:
    return value.astimezone(timezone.utc).strftime('%Y-%m-%dT%H:%M:%SZ')


@attrs.frozen
class RegistrationExpirationInstruction:
    registration_id: int
    event_id: int
    expire_at: datetime

    @classmethod
    def for_registration(
        cls,
        *,
        registration_id: int,
        event_id: int,
        timeout_minutes: int,
        now: datetime | None = None,
    ) -> 'RegistrationExpirationInstruction':
        issued_at = now or datetime.now(timezone.utc)
        return cls(
            registration_id=registration_id,
            event_id=event_id,
            expire_at=issued_at + timedelta(minutes=timeout_minutes),
        )

    def to_json(self) -> bytes:
        return orjson.dumps(
            {
                'registration_id': self.registration_id,
                'event_id': self.event_id,
                'expire_at': _format_rfc3339(self.expire_at),
            }
        )

    @classmethod
    def from_json(cls, payload: bytes | str) -> 'RegistrationExpirationInstruction':
        try:
            data = orjson.loads(payload)
        except orjson.JSONDecodeError as e:
            raise InstructionDecodeError(f'Expiration instruction is not valid JSON: {e}') from e

        if not isinstance(data, dict):
            raise InstructionDecodeError('Expiration instruction must be a JSON object')

        registration_id = data.get('registration_id')
        event_id = data.get('event_id')
        expire_at = data.get('expire_at')
        for name, value in (('registration_id', registration_id), ('event_id', event_id)):
            if not isinstance(value, int) or isinstance(value, bool) or value <= 0:
                raise InstructionDecodeError(f'Invalid {name} in expiration instruction: {value!r}')
        if not isinstance(expire_at, str):
            raise InstructionDecodeError(
                f'Invalid expire_at in expiration instruction: {expire_at!r}'
            )

        try:
            parsed = datetime.fromisoformat(expire_at.replace('Z', '+00:00'))
        except ValueError as e:
            raise InstructionDecodeError(f'Invalid expire_at in expiration instruction: {e}') from e
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)

        return cls(
            registration_id=registration_id,  # type: ignore[arg-type]
            event_id=event_id,  # type: ignore[arg-type]
            expire_at=parsed,
        )
