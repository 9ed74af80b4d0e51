from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.service.event_booking.app.command.create_event_use_case import CreateEventUseCase
from src.service.event_booking.app.query.get_event_use_case import GetEventUseCase
from src.service.event_booking.app.query.list_events_use_case import ListEventsUseCase
from src.service.event_booking.domain.booking_errors import (
    EventNotFoundError,
    TransientStoreError,
)
from src.service.event_booking.domain.enum.registration_status import RegistrationStatus
from test.service.event_booking.test_helpers import (
    RepositoryMocks,
    make_event,
    make_registration,
)


@pytest.mark.unit
class TestCreateEventUseCase:
    async def test_create_persists_validated_event(self) -> None:
        mocks = RepositoryMocks()
        use_case = CreateEventUseCase(event_repo=mocks.event_repo)

        event = await use_case.execute(
            name='PyCon Workshop',
            start_time=datetime(2026, 11, 20, 9, 0, tzinfo=timezone.utc),
            capacity=50,
            payment_timeout_minutes=15,
            location='Taipei',
        )

        assert event.id == 1
        assert event.location == 'Taipei'
        mocks.event_repo.create.assert_awaited_once()

    async def test_invalid_event_never_reaches_the_store(self) -> None:
        mocks = RepositoryMocks()
        use_case = CreateEventUseCase(event_repo=mocks.event_repo)

        with pytest.raises(ValueError):
            await use_case.execute(
                name='PyCon Workshop',
                start_time=datetime(2026, 11, 20, 9, 0, tzinfo=timezone.utc),
                capacity=0,
                payment_timeout_minutes=15,
            )

        mocks.event_repo.create.assert_not_awaited()


@pytest.mark.unit
class TestGetEventUseCase:
    async def test_public_view__available_seats_only(self) -> None:
        mocks = RepositoryMocks(
            event=make_event(capacity=5),
            active_registrations=[make_registration(registration_id=i) for i in (1, 2)],
        )
        use_case = GetEventUseCase(
            event_repo=mocks.event_repo, registration_repo=mocks.registration_repo
        )

        info = await use_case.execute(event_id=1)

        assert info.available_seats == 3
        assert info.registrations is None
        mocks.registration_repo.list_active.assert_not_awaited()

    async def test_admin_view__lists_active_registrations(self) -> None:
        active = [
            make_registration(registration_id=1),
            make_registration(
                registration_id=2, email='grace@example.com', status=RegistrationStatus.CONFIRMED
            ),
        ]
        mocks = RepositoryMocks(event=make_event(capacity=2), active_registrations=active)
        use_case = GetEventUseCase(
            event_repo=mocks.event_repo, registration_repo=mocks.registration_repo
        )

        info = await use_case.execute(event_id=1, admin=True)

        assert info.available_seats == 0
        assert info.registrations == active

    async def test_unknown_event(self) -> None:
        mocks = RepositoryMocks(event=None)
        use_case = GetEventUseCase(
            event_repo=mocks.event_repo, registration_repo=mocks.registration_repo
        )

        with pytest.raises(EventNotFoundError):
            await use_case.execute(event_id=404)


@pytest.mark.unit
class TestListEventsUseCase:
    async def test_lists_every_event_with_seats(self) -> None:
        mocks = RepositoryMocks()
        mocks.event_repo.list_all = AsyncMock(
            return_value=[make_event(event_id=2, capacity=3), make_event(event_id=1, capacity=1)]
        )
        mocks.registration_repo.count_active = AsyncMock(side_effect=[1, 1])
        use_case = ListEventsUseCase(
            event_repo=mocks.event_repo,
            registration_repo=mocks.registration_repo,
            logger=MagicMock(),
        )

        infos = await use_case.execute()

        assert [(i.event.id, i.available_seats) for i in infos] == [(2, 2), (1, 0)]

    async def test_event_with_unreadable_seats_is_skipped(self) -> None:
        mocks = RepositoryMocks()
        mocks.event_repo.list_all = AsyncMock(
            return_value=[make_event(event_id=2), make_event(event_id=1)]
        )
        mocks.registration_repo.count_active = AsyncMock(side_effect=[TransientStoreError(), 0])
        logger = MagicMock()
        use_case = ListEventsUseCase(
            event_repo=mocks.event_repo, registration_repo=mocks.registration_repo, logger=logger
        )

        infos = await use_case.execute()

        assert [i.event.id for i in infos] == [1]
        logger.warning.assert_called_once()
