import pytest
from fastapi.testclient import TestClient

from clinic_backend.models.therapist import Therapist
from clinic_backend.models.user import User

BOOKING_PAYLOAD = {
    'therapist_id': 't-1',
    'therapist_name': 'Dr. Therapist',
    'client_name': ' Client One ',
    'session_start': '2026-01-09T10:00:00',
    'amount': 1500,
    'notes': '  First visit  ',
}


def _book(client: TestClient, **overrides) -> dict:
    response = client.post('/bookings', json={**BOOKING_PAYLOAD, **overrides})
    assert response.status_code == 201, response.text
    return response.json()


def test_create_booking_confirms_the_slot(client: TestClient, login, client_user: User) -> None:
    login(client_user)

    booking = _book(client)

    assert booking['status'] == 'confirmed'
    assert booking['payment_status'] == 'paid'
    assert booking['client_id'] == '7'
    assert booking['client_email'] == 'client@example.com'
    assert booking['client_name'] == 'Client One'
    assert booking['notes'] == 'First visit'
    assert booking['session_end'] == '2026-01-09T11:00:00'


def test_double_booking_is_rejected(client: TestClient, login, client_user: User) -> None:
    login(client_user)
    _book(client)

    response = client.post('/bookings', json=BOOKING_PAYLOAD)

    assert response.status_code == 409
    assert response.json()['detail'] == 'This slot was just booked by someone else. Please select another.'


def test_booking_in_the_past_is_rejected(client: TestClient, login, client_user: User) -> None:
    login(client_user)

    response = client.post('/bookings', json={**BOOKING_PAYLOAD, 'session_start': '2026-01-06T10:00:00'})

    assert response.status_code == 400


def test_blank_client_name_is_rejected(client: TestClient, login, client_user: User) -> None:
    login(client_user)

    response = client.post('/bookings', json={**BOOKING_PAYLOAD, 'client_name': '   '})

    assert response.status_code == 422


def test_booking_blocks_its_slot(client: TestClient, login, client_user: User) -> None:
    login(client_user)
    booking = _book(client)

    slots = client.get('/availability/t-1/slots', params={'date': '2026-01-09'}).json()
    assert {slot['start_time']: slot['is_available'] for slot in slots}['10:00'] is False

    slots = client.get(
        '/availability/t-1/slots',
        params={'date': '2026-01-09', 'exclude_booking_id': booking['id']},
    ).json()
    assert {slot['start_time']: slot['is_available'] for slot in slots}['10:00'] is True


def test_cancelled_slot_can_be_booked_again(client: TestClient, login, client_user: User) -> None:
    login(client_user)
    booking = _book(client)

    cancelled = client.post(f'/bookings/{booking["id"]}/cancel')
    assert cancelled.status_code == 200
    assert cancelled.json()['status'] == 'cancelled'

    assert client.post(f'/bookings/{booking["id"]}/cancel').json()['status'] == 'cancelled'
    _book(client)


def test_cancel_unknown_booking_returns_not_found(client: TestClient, login, client_user: User) -> None:
    login(client_user)

    assert client.post('/bookings/missing/cancel').status_code == 404


def test_reschedule_moves_the_session(client: TestClient, login, client_user: User) -> None:
    login(client_user)
    booking = _book(client)

    response = client.post(f'/bookings/{booking["id"]}/reschedule', json={'session_start': '2026-01-10T15:00:00'})

    assert response.status_code == 200
    assert response.json()['session_start'] == '2026-01-10T15:00:00'


def test_reschedule_onto_taken_slot_conflicts(client: TestClient, login, client_user: User) -> None:
    login(client_user)
    _book(client)
    other = _book(client, session_start='2026-01-09T11:00:00')

    response = client.post(f'/bookings/{other["id"]}/reschedule', json={'session_start': '2026-01-09T10:00:00'})

    assert response.status_code == 409
    assert response.json()['detail'] == 'The selected slot is no longer available.'


def test_other_clients_cannot_see_a_booking(client: TestClient, login, client_user: User) -> None:
    login(client_user)
    booking = _book(client)

    login(User(id=8, email='someone@example.com', role='client'))

    assert client.get(f'/bookings/{booking["id"]}').status_code == 403
    assert client.post(f'/bookings/{booking["id"]}/cancel').status_code == 403


def test_therapist_manages_own_bookings(client: TestClient, login, client_user: User, therapist_user: User) -> None:
    login(client_user)
    booking = _book(client)

    login(therapist_user)

    listed = client.get('/bookings/therapist/t-1', params={'start': '2026-01-09', 'end': '2026-01-09'})
    assert [item['id'] for item in listed.json()] == [booking['id']]

    completed = client.post(f'/bookings/{booking["id"]}/complete')
    assert completed.status_code == 200
    assert completed.json()['status'] == 'completed'


def test_client_cannot_complete_a_booking(client: TestClient, login, client_user: User) -> None:
    login(client_user)
    booking = _book(client)

    assert client.post(f'/bookings/{booking["id"]}/complete').status_code == 403


def test_feedback_updates_therapist_rating(client: TestClient, login, client_user: User, db_session) -> None:
    db_session.add(Therapist(id='t-1', name='Dr. Therapist', rating=4.0, review_count=1))
    db_session.commit()
    login(client_user)
    booking = _book(client)

    response = client.post('/bookings/feedback', json={'booking_id': booking['id'], 'rating': 5, 'comment': 'Great'})

    assert response.status_code == 201
    assert response.json()['rating'] == 5
    therapist = db_session.get(Therapist, 't-1')
    assert therapist.rating == 4.5
    assert therapist.review_count == 2


def test_feedback_is_limited_to_the_booking_client(client: TestClient, login, client_user: User) -> None:
    login(client_user)
    booking = _book(client)

    login(User(id=8, email='someone@example.com', role='client'))
    response = client.post('/bookings/feedback', json={'booking_id': booking['id'], 'rating': 5})

    assert response.status_code == 403


def test_feedback_rating_must_be_in_range(client: TestClient, login, client_user: User) -> None:
    login(client_user)
    booking = _book(client)

    response = client.post('/bookings/feedback', json={'booking_id': booking['id'], 'rating': 6})

    assert response.status_code == 422


def test_session_start_with_utc_offset_is_rejected(client: TestClient, login, client_user: User) -> None:
    login(client_user)

    response = client.post('/bookings', json={**BOOKING_PAYLOAD, 'session_start': '2026-01-09T10:00:00+00:00'})

    assert response.status_code == 422


def test_reschedule_with_utc_offset_is_rejected(client: TestClient, login, client_user: User) -> None:
    login(client_user)
    booking = _book(client)

    response = client.post(
        f'/bookings/{booking["id"]}/reschedule',
        json={'session_start': '2026-01-10T15:00:00+02:00'},
    )

    assert response.status_code == 422


@pytest.mark.parametrize('duration_minutes', [0, -60, 90])
def test_session_length_is_fixed(client: TestClient, login, client_user: User, duration_minutes: int) -> None:
    login(client_user)

    response = client.post('/bookings', json={**BOOKING_PAYLOAD, 'duration_minutes': duration_minutes})

    assert response.status_code == 422
