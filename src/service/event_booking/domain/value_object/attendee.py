import attrs
from email_validator import EmailNotValidError, validate_email


FULL_NAME_MIN_LENGTH = 3
FULL_NAME_MAX_LENGTH = 255


def _validate_full_name(instance: object, attribute: attrs.Attribute, value: str) -> None:
    if not value or not value.strip():
        raise ValueError('full_name is required')
    if not FULL_NAME_MIN_LENGTH <= len(value) <= FULL_NAME_MAX_LENGTH:
        raise ValueError(
            f'full_name must be between {FULL_NAME_MIN_LENGTH} and '
            f'{FULL_NAME_MAX_LENGTH} characters'
        )


def _validate_email(instance: object, attribute: attrs.Attribute, value: str) -> None:
    try:
        validate_email(value, check_deliverability=False)
    except EmailNotValidError as e:
        raise ValueError(f'email is invalid: {e}') from e


def _validate_phone(instance: object, attribute: attrs.Attribute, value: str) -> None:
    if not value or not value.strip():
        raise ValueError('phone is required')


def _strip(value: str) -> str:
    return value.strip() if isinstance(value, str) else value


@attrs.frozen
class Attendee:
    """Who is booking. Email is kept as given; duplicate checks compare it exactly."""

    full_name: str = attrs.field(converter=_strip, validator=_validate_full_name)
    email: str = attrs.field(converter=_strip, validator=_validate_email)
    phone: str = attrs.field(converter=_strip, validator=_validate_phone)
