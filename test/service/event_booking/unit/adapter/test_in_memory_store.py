"""
Registration store contracts, exercised on the in-memory backend

Properties:
- active registrations never exceed capacity, whatever the concurrency
- at most one active registration per (event, email)
- expiring twice is a no-op the second time
- confirm and expire racing on one registration: exactly one wins
"""

from datetime import datetime, timezone

import anyio
import pytest

from src.platform.logging.loguru_io_config import build_component_logger
from src.service.event_booking.app.command.book_registration_use_case import (
    BookRegistrationUseCase,
)
from src.service.event_booking.app.command.confirm_registration_use_case import (
    ConfirmRegistrationUseCase,
)
from src.service.event_booking.app.command.expire_registration_use_case import (
    ExpireRegistrationUseCase,
)
from src.service.event_booking.app.interface.i_registration_repo import Admission
from src.service.event_booking.app.service.attendee_notifier import AttendeeNotifier
from src.service.event_booking.domain.booking_errors import (
    AlreadyCanceledError,
    AlreadyConfirmedError,
    DuplicateRegistrationError,
    EventFullError,
    EventNotFoundError,
    RegistrationNotFoundError,
    RegistrationStateConflictError,
)
from src.service.event_booking.domain.entity.event_entity import Event
from src.service.event_booking.domain.enum.registration_status import RegistrationStatus
from src.service.event_booking.driven_adapter.repo.in_memory_store_impl import (
    InMemoryBookingState,
    InMemoryEventRepo,
    InMemoryRegistrationRepo,
)
from test.service.event_booking.test_helpers import (
    RecordingExpirationScheduler,
    RecordingNotificationSender,
    make_attendee,
)


@pytest.fixture
def state() -> InMemoryBookingState:
    return InMemoryBookingState()


@pytest.fixture
def event_repo(state: InMemoryBookingState) -> InMemoryEventRepo:
    return InMemoryEventRepo(state=state)


@pytest.fixture
def registration_repo(state: InMemoryBookingState) -> InMemoryRegistrationRepo:
    return InMemoryRegistrationRepo(state=state)


async def create_event(repo: InMemoryEventRepo, *, capacity: int, timeout: int = 15) -> Event:
    return await repo.create(
        event=Event.create(
            name='PyCon Workshop',
            start_time=datetime(2026, 11, 20, 9, 0, tzinfo=timezone.utc),
            capacity=capacity,
            payment_timeout_minutes=timeout,
        )
    )


async def admit(
    repo: InMemoryRegistrationRepo, event: Event, email: str = 'ada@example.com'
) -> Admission:
    assert event.id is not None
    return await repo.admit_booking(event_id=event.id, attendee=make_attendee(email=email))


@pytest.mark.unit
class TestAdmission:
    async def test_concurrent_bookings_never_exceed_capacity(
        self, event_repo: InMemoryEventRepo, registration_repo: InMemoryRegistrationRepo
    ) -> None:
        """
        Given: an event with 5 seats
        When: 20 attendees with distinct emails book at the same time
        Then: exactly 5 are admitted and the other 15 see EventFullError
        """
        event = await create_event(event_repo, capacity=5)
        assert event.id is not None
        admitted: list[int] = []
        rejected: list[Exception] = []

        async def book(i: int) -> None:
            try:
                admission = await registration_repo.admit_booking(
                    event_id=event.id,  # type: ignore[arg-type]
                    attendee=make_attendee(email=f'attendee{i}@example.com'),
                )
                admitted.append(admission.registration.id)  # type: ignore[arg-type]
            except EventFullError as e:
                rejected.append(e)

        async with anyio.create_task_group() as tg:
            for i in range(20):
                tg.start_soon(book, i)

        assert len(admitted) == 5
        assert len(set(admitted)) == 5
        assert len(rejected) == 15
        assert await registration_repo.count_active(event_id=event.id) == 5

    async def test_concurrent_duplicate_email_admits_once(
        self, event_repo: InMemoryEventRepo, registration_repo: InMemoryRegistrationRepo
    ) -> None:
        event = await create_event(event_repo, capacity=10)
        outcomes: list[str] = []

        async def book() -> None:
            try:
                await registration_repo.admit_booking(
                    event_id=event.id, attendee=make_attendee()  # type: ignore[arg-type]
                )
                outcomes.append('admitted')
            except DuplicateRegistrationError:
                outcomes.append('duplicate')

        async with anyio.create_task_group() as tg:
            for _ in range(10):
                tg.start_soon(book)

        assert outcomes.count('admitted') == 1
        assert outcomes.count('duplicate') == 9

    async def test_full_is_checked_before_duplicate(
        self, event_repo: InMemoryEventRepo, registration_repo: InMemoryRegistrationRepo
    ) -> None:
        event = await create_event(event_repo, capacity=1)
        await admit(registration_repo, event)

        with pytest.raises(EventFullError):
            await admit(registration_repo, event)

    async def test_unknown_event(self, registration_repo: InMemoryRegistrationRepo) -> None:
        with pytest.raises(EventNotFoundError):
            await registration_repo.admit_booking(event_id=404, attendee=make_attendee())

    async def test_rebook_after_cancel_is_allowed(
        self, event_repo: InMemoryEventRepo, registration_repo: InMemoryRegistrationRepo
    ) -> None:
        event = await create_event(event_repo, capacity=1)
        first = await admit(registration_repo, event)
        assert first.registration.id is not None
        await registration_repo.cancel_if_pending(registration_id=first.registration.id)

        second = await admit(registration_repo, event)

        assert second.registration.id != first.registration.id
        assert second.registration.status == RegistrationStatus.PENDING
        assert second.payment_timeout_minutes == 15


@pytest.mark.unit
class TestStatusTransitions:
    async def test_cancel_if_pending_is_idempotent(
        self, event_repo: InMemoryEventRepo, registration_repo: InMemoryRegistrationRepo
    ) -> None:
        event = await create_event(event_repo, capacity=1)
        admission = await admit(registration_repo, event)
        registration_id = admission.registration.id
        assert registration_id is not None

        assert await registration_repo.cancel_if_pending(registration_id=registration_id) is True
        assert await registration_repo.cancel_if_pending(registration_id=registration_id) is False

        stored = await registration_repo.get_by_id(registration_id=registration_id)
        assert stored is not None
        assert stored.status == RegistrationStatus.CANCELED

    async def test_cancel_unknown_registration(
        self, registration_repo: InMemoryRegistrationRepo
    ) -> None:
        with pytest.raises(RegistrationNotFoundError):
            await registration_repo.cancel_if_pending(registration_id=404)

    async def test_unknown_ids_do_not_allocate_locks(
        self,
        state: InMemoryBookingState,
        event_repo: InMemoryEventRepo,
        registration_repo: InMemoryRegistrationRepo,
    ) -> None:
        """
        Given: one event with one registration
        When: requests name ids that do not exist
        Then: they fail as usual and only the real rows own a lock
        """
        event = await create_event(event_repo, capacity=1)
        admission = await admit(registration_repo, event)

        with pytest.raises(EventNotFoundError):
            await registration_repo.admit_booking(event_id=404, attendee=make_attendee())
        with pytest.raises(RegistrationNotFoundError):
            await registration_repo.cancel_if_pending(registration_id=404)
        with pytest.raises(RegistrationStateConflictError) as exc_info:
            await registration_repo.confirm(registration_id=405)

        assert exc_info.value.observed_status is None
        assert set(state.event_locks) == {event.id}
        assert set(state.registration_locks) == {admission.registration.id}

    async def test_confirm_after_cancel_reports_observed_status(
        self, event_repo: InMemoryEventRepo, registration_repo: InMemoryRegistrationRepo
    ) -> None:
        event = await create_event(event_repo, capacity=1)
        admission = await admit(registration_repo, event)
        registration_id = admission.registration.id
        assert registration_id is not None
        await registration_repo.cancel_if_pending(registration_id=registration_id)

        with pytest.raises(RegistrationStateConflictError) as exc_info:
            await registration_repo.confirm(registration_id=registration_id)

        assert exc_info.value.observed_status == 'canceled'

    @pytest.mark.parametrize('confirm_first', [True, False])
    async def test_confirm_and_expire_race__exactly_one_wins(
        self,
        event_repo: InMemoryEventRepo,
        registration_repo: InMemoryRegistrationRepo,
        confirm_first: bool,
    ) -> None:
        event = await create_event(event_repo, capacity=1)
        admission = await admit(registration_repo, event)
        registration_id = admission.registration.id
        assert registration_id is not None
        results: dict[str, object] = {}

        async def confirm() -> None:
            try:
                await registration_repo.confirm(registration_id=registration_id)
                results['confirm'] = True
            except RegistrationStateConflictError:
                results['confirm'] = False

        async def expire() -> None:
            results['expire'] = await registration_repo.cancel_if_pending(
                registration_id=registration_id
            )

        async with anyio.create_task_group() as tg:
            for task in (confirm, expire) if confirm_first else (expire, confirm):
                tg.start_soon(task)

        assert results['confirm'] != results['expire']
        stored = await registration_repo.get_by_id(registration_id=registration_id)
        assert stored is not None
        if results['confirm']:
            assert stored.status == RegistrationStatus.CONFIRMED
        else:
            assert stored.status == RegistrationStatus.CANCELED

    async def test_returned_entities_are_copies(
        self, event_repo: InMemoryEventRepo, registration_repo: InMemoryRegistrationRepo
    ) -> None:
        event = await create_event(event_repo, capacity=1)
        admission = await admit(registration_repo, event)
        admission.registration.status = RegistrationStatus.CONFIRMED

        active = await registration_repo.list_active(event_id=event.id)  # type: ignore[arg-type]

        assert [r.status for r in active] == [RegistrationStatus.PENDING]


@pytest.mark.unit
class TestBookingLifecycleScenario:
    async def test_single_seat_is_released_by_expiration(
        self, event_repo: InMemoryEventRepo, registration_repo: InMemoryRegistrationRepo
    ) -> None:
        """
        Given: an event with one seat
        When: A holds it, B is turned away, A's hold expires, B books again
        Then: B gets the seat, A can no longer confirm, and A cannot re-book while B holds it
        """
        logger = build_component_logger(component='scenario-test')
        scheduler = RecordingExpirationScheduler()
        sender = RecordingNotificationSender()
        notifier = AttendeeNotifier(
            notification_sender=sender, event_repo=event_repo, logger=logger
        )
        book = BookRegistrationUseCase(
            registration_repo=registration_repo,
            expiration_scheduler=scheduler,
            attendee_notifier=notifier,
            logger=logger,
        )
        confirm = ConfirmRegistrationUseCase(
            event_repo=event_repo,
            registration_repo=registration_repo,
            attendee_notifier=notifier,
            logger=logger,
        )
        expire = ExpireRegistrationUseCase(
            registration_repo=registration_repo, attendee_notifier=notifier, logger=logger
        )
        event = await create_event(event_repo, capacity=1, timeout=1)
        assert event.id is not None
        alice = make_attendee(email='alice@example.com', full_name='Alice')
        bob = make_attendee(email='bob@example.com', full_name='Bob Builder')

        hold = await book.execute(event_id=event.id, attendee=alice)
        with pytest.raises(EventFullError):
            await book.execute(event_id=event.id, attendee=bob)

        assert hold.id is not None
        assert await expire.execute(instruction=scheduler.instruction_for(hold.id)) is True
        # Redelivery changes nothing
        assert await expire.execute(instruction=scheduler.instruction_for(hold.id)) is False

        bob_registration = await book.execute(event_id=event.id, attendee=bob)
        with pytest.raises(AlreadyCanceledError):
            await confirm.execute(event_id=event.id, registration_id=hold.id, email=alice.email)
        with pytest.raises(EventFullError):
            await book.execute(event_id=event.id, attendee=alice)

        assert bob_registration.id is not None
        confirmed = await confirm.execute(
            event_id=event.id, registration_id=bob_registration.id, email=bob.email
        )
        assert confirmed.status == RegistrationStatus.CONFIRMED
        with pytest.raises(AlreadyConfirmedError):
            await confirm.execute(
                event_id=event.id, registration_id=bob_registration.id, email=bob.email
            )
        # Expiration arriving after confirmation is a no-op
        late = scheduler.instruction_for(bob_registration.id)
        assert await expire.execute(instruction=late) is False

        assert [(n['recipient_email'], n['status']) for n in sender.sent] == [
            ('alice@example.com', RegistrationStatus.PENDING),
            ('alice@example.com', RegistrationStatus.CANCELED),
            ('bob@example.com', RegistrationStatus.PENDING),
            ('bob@example.com', RegistrationStatus.CONFIRMED),
        ]
        assert await registration_repo.count_active(event_id=event.id) == 1
