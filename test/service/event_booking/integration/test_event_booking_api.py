"""
HTTP API tests for /v1/events

The test app (test/test_main.py) runs the real container against the test
database; expiration instructions land in a recording scheduler and are
delivered by hand through the container's expiration use case.
"""

from functools import partial
from typing import Any

import pytest
from fastapi.testclient import TestClient

from src.platform.config.di import container
from src.service.event_booking.domain.enum.registration_status import RegistrationStatus
from test.test_main import log_notification_sender, recording_scheduler


EVENTS = '/v1/events'


@pytest.fixture(autouse=True)
def reset_recorders() -> None:
    recording_scheduler.scheduled.clear()
    log_notification_sender.sent.clear()


def create_event(client: TestClient, **overrides: Any) -> dict[str, Any]:
    payload = {
        'name': 'PyCon Workshop',
        'description': 'Hands-on async Python',
        'start_time': '2026-11-20T09:00:00+08:00',
        'location': 'Taipei',
        'capacity': 2,
        'payment_timeout_minutes': 15,
    } | overrides
    response = client.post(EVENTS, json=payload)
    assert response.status_code == 201, response.text
    return response.json()['data']


def book(client: TestClient, event_id: int, email: str = 'ada@example.com') -> Any:
    return client.post(
        f'{EVENTS}/{event_id}/book',
        json={'full_name': 'Ada Lovelace', 'email': email, 'phone': '+886912345678'},
    )


def confirm(
    client: TestClient, event_id: int, registration_id: int, email: str = 'ada@example.com'
) -> Any:
    return client.post(
        f'{EVENTS}/{event_id}/confirm',
        json={'registration_id': registration_id, 'email': email},
    )


def expire(client: TestClient, registration_id: int) -> bool:
    """Deliver the scheduled instruction the way the expiration worker would."""
    use_case = container.expire_registration_use_case()
    instruction = recording_scheduler.instruction_for(registration_id)
    assert client.portal is not None
    return client.portal.call(partial(use_case.execute, instruction=instruction))


def error_code(response: Any) -> str:
    body = response.json()
    assert body['status'] == 'error'
    return body['error']['code']


class TestEventCatalogue:
    def test_create_event(self, client: TestClient) -> None:
        event = create_event(client, capacity=50)

        assert event['id'] > 0
        assert event['capacity'] == 50
        assert event['available_seats'] == 50
        assert event['registrations'] is None

    @pytest.mark.parametrize(
        'overrides',
        [{'capacity': 0}, {'payment_timeout_minutes': 0}, {'name': '   '}, {'start_time': 'soon'}],
    )
    def test_create_event_validation(self, client: TestClient, overrides: dict[str, Any]) -> None:
        payload = {
            'name': 'PyCon Workshop',
            'start_time': '2026-11-20T09:00:00Z',
            'capacity': 2,
            'payment_timeout_minutes': 15,
        } | overrides

        response = client.post(EVENTS, json=payload)

        assert response.status_code == 400
        assert error_code(response) == 'FIELD_BADFORMAT'

    def test_end_before_start_is_field_incorrect(self, client: TestClient) -> None:
        response = client.post(
            EVENTS,
            json={
                'name': 'PyCon Workshop',
                'start_time': '2026-11-20T09:00:00Z',
                'end_time': '2026-11-20T08:00:00Z',
                'capacity': 2,
                'payment_timeout_minutes': 15,
            },
        )

        assert response.status_code == 400
        assert error_code(response) == 'FIELD_INCORRECT'

    def test_get_unknown_event(self, client: TestClient) -> None:
        response = client.get(f'{EVENTS}/999999')

        assert response.status_code == 404
        assert error_code(response) == 'EVENT_NOT_FOUND'

    def test_non_numeric_event_id(self, client: TestClient) -> None:
        response = client.get(f'{EVENTS}/abc')

        assert response.status_code == 400
        assert error_code(response) == 'FIELD_BADFORMAT'

    def test_list_events_newest_first(self, client: TestClient) -> None:
        older = create_event(client, name='Older')
        newer = create_event(client, name='Newer')

        response = client.get(EVENTS)

        assert response.status_code == 200
        assert [e['id'] for e in response.json()['data']] == [newer['id'], older['id']]

    def test_admin_view_lists_active_registrations(self, client: TestClient) -> None:
        event = create_event(client)
        registration = book(client, event['id']).json()['data']

        public = client.get(f'{EVENTS}/{event["id"]}').json()['data']
        admin = client.get(f'{EVENTS}/{event["id"]}', params={'admin': 'true'}).json()['data']
        listed = client.get(EVENTS, params={'admin': 'true'}).json()['data']

        assert public['available_seats'] == 1
        assert public['registrations'] is None
        assert [r['id'] for r in admin['registrations']] == [registration['id']]
        assert admin['registrations'][0]['status'] == 'pending'
        assert listed[0]['registrations'][0]['email'] == 'ada@example.com'


class TestBooking:
    def test_book_holds_a_seat_and_schedules_expiration(self, client: TestClient) -> None:
        event = create_event(client, payment_timeout_minutes=15)

        response = book(client, event['id'])

        assert response.status_code == 201
        body = response.json()
        assert body['status'] == 'ok'
        registration = body['data']
        assert registration['status'] == 'pending'
        assert registration['event_id'] == event['id']

        instruction, delay = recording_scheduler.scheduled[0]
        assert instruction.registration_id == registration['id']
        assert delay.total_seconds() == 15 * 60

        recipient, message = log_notification_sender.sent[0]
        assert recipient == 'ada@example.com'
        assert 'within 15 minutes' in message.body

    def test_full_event(self, client: TestClient) -> None:
        event = create_event(client, capacity=1)
        assert book(client, event['id']).status_code == 201

        response = book(client, event['id'], email='grace@example.com')

        assert response.status_code == 409
        assert error_code(response) == 'EVENT_FULL'

    def test_duplicate_email(self, client: TestClient) -> None:
        event = create_event(client, capacity=5)
        assert book(client, event['id']).status_code == 201

        response = book(client, event['id'])

        assert response.status_code == 409
        assert error_code(response) == 'REGISTRATION_DUPLICATE'

    def test_unknown_event(self, client: TestClient) -> None:
        response = book(client, 999999)

        assert response.status_code == 404
        assert error_code(response) == 'EVENT_NOT_FOUND'

    @pytest.mark.parametrize(
        'payload',
        [
            {'full_name': 'Ada Lovelace', 'email': 'not-an-email', 'phone': '0912'},
            {'full_name': 'Al', 'email': 'ada@example.com', 'phone': '0912'},
            {'full_name': 'Ada Lovelace', 'email': 'ada@example.com', 'phone': '   '},
            {'full_name': 'Ada Lovelace', 'email': 'ada@example.com'},
        ],
    )
    def test_invalid_attendee(self, client: TestClient, payload: dict[str, str]) -> None:
        event = create_event(client)

        response = client.post(f'{EVENTS}/{event["id"]}/book', json=payload)

        assert response.status_code == 400
        assert error_code(response) == 'FIELD_BADFORMAT'
        assert recording_scheduler.scheduled == []


class TestConfirmation:
    def test_confirm(self, client: TestClient) -> None:
        event = create_event(client)
        registration = book(client, event['id']).json()['data']

        response = confirm(client, event['id'], registration['id'])

        assert response.status_code == 200
        assert response.json()['data']['status'] == 'confirmed'
        assert [m.subject for _, m in log_notification_sender.sent] == [
            'Registration received: PyCon Workshop',
            'Registration confirmed: PyCon Workshop',
        ]

    def test_confirm_twice(self, client: TestClient) -> None:
        event = create_event(client)
        registration = book(client, event['id']).json()['data']
        assert confirm(client, event['id'], registration['id']).status_code == 200

        response = confirm(client, event['id'], registration['id'])

        assert response.status_code == 409
        assert error_code(response) == 'ALREADY_CONFIRMED'

    def test_wrong_email(self, client: TestClient) -> None:
        event = create_event(client)
        registration = book(client, event['id']).json()['data']

        response = confirm(client, event['id'], registration['id'], email='mallory@example.com')

        assert response.status_code == 400
        assert error_code(response) == 'FIELD_INCORRECT'

    def test_unknown_registration(self, client: TestClient) -> None:
        event = create_event(client)

        response = confirm(client, event['id'], 999999)

        assert response.status_code == 404
        assert error_code(response) == 'REGISTRATION_NOT_FOUND'

    def test_registration_of_another_event(self, client: TestClient) -> None:
        first = create_event(client, name='First')
        second = create_event(client, name='Second')
        registration = book(client, first['id']).json()['data']

        response = confirm(client, second['id'], registration['id'])

        assert response.status_code == 404
        assert error_code(response) == 'REGISTRATION_NOT_FOUND'


class TestExpiration:
    def test_unconfirmed_hold_is_released(self, client: TestClient) -> None:
        """
        Given: a one-seat event held by Ada
        When: Ada's payment timeout elapses before she confirms
        Then: the seat goes back on sale, Ada can no longer confirm and Grace can book
        """
        event = create_event(client, capacity=1)
        hold = book(client, event['id']).json()['data']
        assert error_code(book(client, event['id'], email='grace@example.com')) == 'EVENT_FULL'

        assert expire(client, hold['id']) is True
        assert expire(client, hold['id']) is False

        assert client.get(f'{EVENTS}/{event["id"]}').json()['data']['available_seats'] == 1
        late = confirm(client, event['id'], hold['id'])
        assert late.status_code == 409
        assert error_code(late) == 'ALREADY_CANCELED'
        assert book(client, event['id'], email='grace@example.com').status_code == 201
        assert log_notification_sender.sent[1][1].subject == 'Registration canceled: PyCon Workshop'

    def test_expiration_after_confirmation_is_noop(self, client: TestClient) -> None:
        event = create_event(client, capacity=1)
        registration = book(client, event['id']).json()['data']
        assert confirm(client, event['id'], registration['id']).status_code == 200

        assert expire(client, registration['id']) is False

        admin = client.get(f'{EVENTS}/{event["id"]}', params={'admin': 'true'}).json()['data']
        assert admin['registrations'][0]['status'] == RegistrationStatus.CONFIRMED.value
        assert admin['available_seats'] == 0


class TestCommonEndpoints:
    def test_health(self, client: TestClient) -> None:
        response = client.get('/health')

        assert response.status_code == 200
        assert response.json()['status'] == 'healthy'
        assert response.json()['storage_backend'] == 'sql'

    def test_ready_when_database_answers(self, client: TestClient) -> None:
        response = client.get('/health/ready')

        assert response.status_code == 200
        assert response.json() == {'status': 'ready'}

    def test_metrics_expose_booking_counters(self, client: TestClient) -> None:
        event = create_event(client, capacity=1)
        book(client, event['id'])

        response = client.get('/metrics')

        assert response.status_code == 200
        assert 'booking_admissions_total' in response.text
