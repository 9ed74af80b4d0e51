from datetime import datetime
from typing import Generic, List, Literal, Optional, TypeVar

from pydantic import BaseModel, EmailStr, Field, field_validator

from src.service.event_booking.domain.entity.registration_entity import Registration
from src.service.event_booking.domain.value_object.event_info import EventInfo


_T = TypeVar('_T')


class OkResponse(BaseModel, Generic[_T]):
    status: Literal['ok'] = 'ok'
    data: _T


class EventCreateRequest(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    description: str = ''
    start_time: datetime
    end_time: Optional[datetime] = None
    location: str = Field(default='', max_length=255)
    capacity: int = Field(gt=0)
    payment_timeout_minutes: int = Field(ge=1)

    model_config = {
        'json_schema_extra': {
            'example': {
                'name': 'PyCon Taiwan Workshop',
                'description': 'Hands-on async Python',
                'start_time': '2026-11-20T09:00:00+08:00',
                'end_time': '2026-11-20T17:00:00+08:00',
                'location': 'Taipei',
                'capacity': 50,
                'payment_timeout_minutes': 15,
            }
        }
    }

    @field_validator('name')
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError('name is required')
        return v


class BookingRequest(BaseModel):
    full_name: str = Field(min_length=3, max_length=255)
    email: EmailStr
    phone: str = Field(min_length=1, max_length=50)

    model_config = {
        'json_schema_extra': {
            'example': {
                'full_name': 'Ada Lovelace',
                'email': 'ada@example.com',
                'phone': '+886912345678',
            }
        }
    }

    @field_validator('phone')
    @classmethod
    def phone_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError('phone is required')
        return v


class ConfirmRequest(BaseModel):
    registration_id: int = Field(gt=0)
    email: EmailStr

    model_config = {
        'json_schema_extra': {'example': {'registration_id': 1, 'email': 'ada@example.com'}}
    }


class RegistrationResponse(BaseModel):
    id: int
    event_id: int
    full_name: str
    email: str
    phone: str
    status: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_entity(cls, registration: Registration) -> 'RegistrationResponse':
        assert registration.id is not None
        return cls(
            id=registration.id,
            event_id=registration.event_id,
            full_name=registration.full_name,
            email=registration.email,
            phone=registration.phone,
            status=registration.status.value,
            created_at=registration.created_at,
            updated_at=registration.updated_at,
        )


class EventResponse(BaseModel):
    id: int
    name: str
    description: str
    start_time: datetime
    end_time: Optional[datetime] = None
    location: str
    capacity: int
    payment_timeout_minutes: int
    available_seats: int
    created_at: Optional[datetime] = None
    registrations: Optional[List[RegistrationResponse]] = None

    @classmethod
    def from_info(cls, info: EventInfo) -> 'EventResponse':
        event = info.event
        assert event.id is not None
        return cls(
            id=event.id,
            name=event.name,
            description=event.description,
            start_time=event.start_time,
            end_time=event.end_time,
            location=event.location,
            capacity=event.capacity,
            payment_timeout_minutes=event.payment_timeout_minutes,
            available_seats=info.available_seats,
            created_at=event.created_at,
            registrations=(
                [RegistrationResponse.from_entity(r) for r in info.registrations]
                if info.registrations is not None
                else None
            ),
        )
