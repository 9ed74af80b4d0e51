from typing import List

from fastapi import APIRouter, Depends, status

from src.platform.logging.loguru_io import Logger
from src.service.event_booking.app.command.book_registration_use_case import (
    BookRegistrationUseCase,
)
from src.service.event_booking.app.command.confirm_registration_use_case import (
    ConfirmRegistrationUseCase,
)
from src.service.event_booking.app.command.create_event_use_case import CreateEventUseCase
from src.service.event_booking.app.query.get_event_use_case import GetEventUseCase
from src.service.event_booking.app.query.list_events_use_case import ListEventsUseCase
from src.service.event_booking.domain.value_object.attendee import Attendee
from src.service.event_booking.domain.value_object.event_info import EventInfo
from src.service.event_booking.driving_adapter.http_controller.schema.event_schema import (
    BookingRequest,
    ConfirmRequest,
    EventCreateRequest,
    EventResponse,
    OkResponse,
    RegistrationResponse,
)


router = APIRouter()


@router.post('', status_code=status.HTTP_201_CREATED)
@Logger.io
async def create_event(
    request: EventCreateRequest,
    use_case: CreateEventUseCase = Depends(CreateEventUseCase.depends),
) -> OkResponse[EventResponse]:
    event = await use_case.execute(
        name=request.name,
        description=request.description,
        start_time=request.start_time,
        end_time=request.end_time,
        location=request.location,
        capacity=request.capacity,
        payment_timeout_minutes=request.payment_timeout_minutes,
    )
    return OkResponse(
        data=EventResponse.from_info(EventInfo.build(event=event, active_count=0))
    )


@router.get('', status_code=status.HTTP_200_OK)
@Logger.io
async def list_events(
    admin: bool = False,
    use_case: ListEventsUseCase = Depends(ListEventsUseCase.depends),
) -> OkResponse[List[EventResponse]]:
    infos = await use_case.execute(admin=admin)
    return OkResponse(data=[EventResponse.from_info(info) for info in infos])


@router.get('/{event_id}', status_code=status.HTTP_200_OK)
@Logger.io
async def get_event(
    event_id: int,
    admin: bool = False,
    use_case: GetEventUseCase = Depends(GetEventUseCase.depends),
) -> OkResponse[EventResponse]:
    """Event details with available seats; `?admin=true` adds the active registrations."""
    info = await use_case.execute(event_id=event_id, admin=admin)
    return OkResponse(data=EventResponse.from_info(info))


@router.post('/{event_id}/book', status_code=status.HTTP_201_CREATED)
@Logger.io
async def book(
    event_id: int,
    request: BookingRequest,
    use_case: BookRegistrationUseCase = Depends(BookRegistrationUseCase.depends),
) -> OkResponse[RegistrationResponse]:
    attendee = Attendee(full_name=request.full_name, email=str(request.email), phone=request.phone)
    registration = await use_case.execute(event_id=event_id, attendee=attendee)
    return OkResponse(data=RegistrationResponse.from_entity(registration))


@router.post('/{event_id}/confirm', status_code=status.HTTP_200_OK)
@Logger.io
async def confirm(
    event_id: int,
    request: ConfirmRequest,
    use_case: ConfirmRegistrationUseCase = Depends(ConfirmRegistrationUseCase.depends),
) -> OkResponse[RegistrationResponse]:
    registration = await use_case.execute(
        event_id=event_id,
        registration_id=request.registration_id,
        email=str(request.email),
    )
    return OkResponse(data=RegistrationResponse.from_entity(registration))
