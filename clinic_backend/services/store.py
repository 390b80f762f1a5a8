"""
Storage collaborator for the scheduling core.

`BookingStore` is the narrow interface the booking service depends on.
`SqlBookingStore` implements it on top of a SQLAlchemy session that the
caller owns; every database failure is rolled back and surfaced as
`StorageUnavailable` so the service can decide whether to fail open or closed.
"""

from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Protocol

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from clinic_backend.core.errors import BookingNotFound, StorageUnavailable
from clinic_backend.models.availability import AvailabilityRule
from clinic_backend.models.booking import Booking
from clinic_backend.models.busy_slot import BusySlot
from clinic_backend.models.feedback import Feedback
from clinic_backend.models.therapist import Therapist
from clinic_backend.scheduling.types import (
    AvailabilityRuleData,
    BookingData,
    BusyIntervalData,
    FeedbackData,
    TherapistData,
)

UPDATABLE_BOOKING_FIELDS = {'session_start', 'status', 'payment_status', 'notes', 'updated_at'}


class BookingStore(Protocol):
    def fetch_availability_rules(self, therapist_id: str) -> list[AvailabilityRuleData]: ...

    def replace_availability_rules(self, therapist_id: str, rules: list[AvailabilityRuleData]) -> None: ...

    def fetch_bookings(self, therapist_id: str, range_start: datetime, range_end: datetime) -> list[BookingData]: ...

    def get_booking(self, booking_id: str) -> BookingData | None: ...

    def insert_booking(self, record: BookingData) -> str: ...

    def update_booking(self, booking_id: str, fields: dict[str, Any]) -> None: ...

    def fetch_busy_intervals(
        self, therapist_id: str, range_start: datetime, range_end: datetime
    ) -> list[BusyIntervalData]: ...

    def insert_busy_interval(self, record: BusyIntervalData) -> str: ...

    def delete_busy_interval(self, therapist_id: str, busy_id: str) -> bool: ...

    def insert_feedback(self, record: FeedbackData) -> str: ...

    def get_therapist(self, therapist_id: str) -> TherapistData | None: ...

    def update_therapist_rating(self, therapist_id: str, rating: float, review_count: int) -> None: ...


def _busy_from_row(row: BusySlot) -> BusyIntervalData:
    return BusyIntervalData(
        id=row.id,
        therapist_id=row.therapist_id,
        start=row.start_time,
        end=row.end_time,
        reason=row.reason,
    )


class SqlBookingStore:
    def __init__(self, db: Session):
        self.db = db

    @contextmanager
    def _guard(self) -> Iterator[None]:
        try:
            yield
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise StorageUnavailable('Database unavailable. Verify DATABASE_URL and database credentials.') from exc

    def fetch_availability_rules(self, therapist_id: str) -> list[AvailabilityRuleData]:
        with self._guard():
            rows = (
                self.db.query(AvailabilityRule)
                .filter(AvailabilityRule.therapist_id == therapist_id)
                .order_by(AvailabilityRule.day_of_week.asc(), AvailabilityRule.start_time.asc())
                .all()
            )
        return [AvailabilityRuleData.model_validate(row) for row in rows]

    def replace_availability_rules(self, therapist_id: str, rules: list[AvailabilityRuleData]) -> None:
        with self._guard():
            self.db.query(AvailabilityRule).filter(AvailabilityRule.therapist_id == therapist_id).delete()
            for rule in rules:
                self.db.add(
                    AvailabilityRule(
                        id=rule.id,
                        therapist_id=therapist_id,
                        day_of_week=rule.day_of_week,
                        start_time=rule.start_time,
                        end_time=rule.end_time,
                        is_break=rule.is_break,
                    )
                )
            self.db.commit()

    def fetch_bookings(self, therapist_id: str, range_start: datetime, range_end: datetime) -> list[BookingData]:
        with self._guard():
            rows = (
                self.db.query(Booking)
                .filter(
                    Booking.therapist_id == therapist_id,
                    Booking.session_start >= range_start,
                    Booking.session_start <= range_end,
                )
                .order_by(Booking.session_start.asc())
                .all()
            )
        return [BookingData.model_validate(row) for row in rows]

    def get_booking(self, booking_id: str) -> BookingData | None:
        with self._guard():
            row = self.db.get(Booking, booking_id)
        return BookingData.model_validate(row) if row else None

    def insert_booking(self, record: BookingData) -> str:
        values = record.model_dump(exclude={'id'})
        values['status'] = record.status.value
        values['payment_status'] = record.payment_status.value

        with self._guard():
            booking = Booking(**values)
            if record.id:
                booking.id = record.id
            self.db.add(booking)
            self.db.commit()
            self.db.refresh(booking)
        return booking.id

    def update_booking(self, booking_id: str, fields: dict[str, Any]) -> None:
        unknown = set(fields) - UPDATABLE_BOOKING_FIELDS
        if unknown:
            raise ValueError(f'Cannot update booking fields: {", ".join(sorted(unknown))}')

        with self._guard():
            booking = self.db.get(Booking, booking_id)
            if booking is None:
                raise BookingNotFound(booking_id)
            for name, value in fields.items():
                setattr(booking, name, getattr(value, 'value', value))
            self.db.commit()

    def fetch_busy_intervals(
        self, therapist_id: str, range_start: datetime, range_end: datetime
    ) -> list[BusyIntervalData]:
        with self._guard():
            rows = (
                self.db.query(BusySlot)
                .filter(
                    BusySlot.therapist_id == therapist_id,
                    BusySlot.start_time <= range_end,
                    BusySlot.end_time > range_start,
                )
                .order_by(BusySlot.start_time.asc())
                .all()
            )
        return [_busy_from_row(row) for row in rows]

    def insert_busy_interval(self, record: BusyIntervalData) -> str:
        with self._guard():
            busy_slot = BusySlot(
                id=record.id,
                therapist_id=record.therapist_id,
                start_time=record.start,
                end_time=record.end,
                reason=record.reason,
            )
            self.db.add(busy_slot)
            self.db.commit()
        return busy_slot.id

    def delete_busy_interval(self, therapist_id: str, busy_id: str) -> bool:
        with self._guard():
            busy_slot = self.db.get(BusySlot, busy_id)
            if busy_slot is None or busy_slot.therapist_id != therapist_id:
                return False
            self.db.delete(busy_slot)
            self.db.commit()
        return True

    def insert_feedback(self, record: FeedbackData) -> str:
        with self._guard():
            feedback = Feedback(**record.model_dump(exclude={'id'}))
            self.db.add(feedback)
            self.db.commit()
            self.db.refresh(feedback)
        return feedback.id

    def get_therapist(self, therapist_id: str) -> TherapistData | None:
        with self._guard():
            row = self.db.get(Therapist, therapist_id)
        return TherapistData.model_validate(row) if row else None

    def update_therapist_rating(self, therapist_id: str, rating: float, review_count: int) -> None:
        with self._guard():
            therapist = self.db.get(Therapist, therapist_id)
            if therapist is None:
                return
            therapist.rating = rating
            therapist.review_count = review_count
            self.db.commit()
