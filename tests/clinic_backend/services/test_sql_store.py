from datetime import datetime

import pytest
from sqlalchemy.exc import OperationalError

from clinic_backend.core.errors import StorageUnavailable
from clinic_backend.scheduling.types import BookingData, BusyIntervalData
from clinic_backend.services.store import SqlBookingStore


def _raise_operational_error(*args, **kwargs):
    raise OperationalError('SELECT 1', {}, Exception('connection refused'))


def test_store_wraps_database_errors(store: SqlBookingStore, db_session, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(db_session, 'query', _raise_operational_error)

    with pytest.raises(StorageUnavailable) as exception_info:
        store.fetch_availability_rules('t-1')

    assert isinstance(exception_info.value.__cause__, OperationalError)


def test_store_rejects_unknown_booking_fields(store: SqlBookingStore) -> None:
    with pytest.raises(ValueError):
        store.update_booking('b-1', {'therapist_id': 't-2'})


def test_busy_intervals_are_returned_when_they_overlap_the_range(store: SqlBookingStore) -> None:
    store.insert_busy_interval(
        BusyIntervalData(
            id='vacation',
            therapist_id='t-1',
            start=datetime(2026, 1, 5, 0, 0),
            end=datetime(2026, 1, 10, 0, 0),
            reason='Vacation',
        )
    )
    store.insert_busy_interval(
        BusyIntervalData(
            id='later',
            therapist_id='t-1',
            start=datetime(2026, 1, 12, 9, 0),
            end=datetime(2026, 1, 12, 10, 0),
        )
    )

    found = store.fetch_busy_intervals('t-1', datetime(2026, 1, 7), datetime(2026, 1, 7, 23, 59))

    assert [interval.id for interval in found] == ['vacation']
    assert found[0].reason == 'Vacation'


def test_fetch_bookings_range_is_inclusive(service, store: SqlBookingStore) -> None:
    service.create_booking(
        BookingData(
            client_id='c-1',
            client_name='Client',
            client_email='client@example.com',
            therapist_id='t-1',
            therapist_name='Therapist',
            session_start=datetime(2026, 1, 9, 9, 0),
        )
    )

    assert len(store.fetch_bookings('t-1', datetime(2026, 1, 9, 9, 0), datetime(2026, 1, 9, 9, 0))) == 1
    assert store.fetch_bookings('t-1', datetime(2026, 1, 9, 9, 1), datetime(2026, 1, 9, 23, 0)) == []
