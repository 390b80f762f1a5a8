"""
Booking service: availability reads, slot views and write-time conflict checks.

Reads of availability rules fail open: when the store errors out, or has
nothing configured for a therapist, the default weekly template is returned so
browsing keeps working. Writes fail closed: a storage error while re-checking a
slot propagates, because silently passing the check could double-book.

Conflict detection compares exact session start times. This is only sound
while every writer places sessions on the same fixed-length grid produced by
the slot generator; a booking type with a different duration or offset would
need an interval-overlap check instead.
"""

import logging
from collections.abc import Callable
from datetime import date, datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal

from clinic_backend.core import config
from clinic_backend.core.errors import BookingNotFound, ConflictError, StorageUnavailable
from clinic_backend.scheduling.availability import default_availability
from clinic_backend.scheduling.calendar import candidate_dates
from clinic_backend.scheduling.intervals import end_of_day, start_of_day
from clinic_backend.scheduling.slots import generate_slots
from clinic_backend.scheduling.types import (
    AvailabilityRuleData,
    BookingData,
    BookingStatus,
    BusyIntervalData,
    FeedbackData,
    PaymentStatus,
    TimeSlot,
)
from clinic_backend.services.store import BookingStore

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]

SLOT_TAKEN_MESSAGE = 'This slot was just booked by someone else. Please select another.'
SLOT_UNAVAILABLE_MESSAGE = 'The selected slot is no longer available.'


def running_mean(current_rating: float, current_count: int, new_rating: int) -> tuple[float, int]:
    new_count = current_count + 1
    new_rating_value = (current_rating * current_count + new_rating) / new_count
    rounded = Decimal(str(new_rating_value)).quantize(Decimal('0.1'), rounding=ROUND_HALF_UP)
    return float(rounded), new_count


def has_start_conflict(
    bookings: list[BookingData],
    session_start: datetime,
    exclude_booking_id: str | None = None,
) -> bool:
    for booking in bookings:
        if booking.is_cancelled or booking.id == exclude_booking_id:
            continue
        if booking.session_start == session_start:
            return True
    return False


class BookingService:
    def __init__(self, store: BookingStore | None, clock: Clock = datetime.now):
        self.store = store
        self.clock = clock

    # Read path

    def get_availability(self, therapist_id: str) -> list[AvailabilityRuleData]:
        if self.store is None:
            return default_availability(therapist_id)

        try:
            rules = self.store.fetch_availability_rules(therapist_id)
        except Exception:
            logger.exception('Error fetching availability for therapist %s; using default schedule.', therapist_id)
            return default_availability(therapist_id)

        if not rules:
            return default_availability(therapist_id)
        return rules

    resolve_availability = get_availability

    def get_bookings(self, therapist_id: str, range_start: datetime, range_end: datetime) -> list[BookingData]:
        if self.store is None:
            return []
        return self.store.fetch_bookings(therapist_id, range_start, range_end)

    def get_busy_intervals(
        self, therapist_id: str, range_start: datetime, range_end: datetime
    ) -> list[BusyIntervalData]:
        if self.store is None:
            return []
        return self.store.fetch_busy_intervals(therapist_id, range_start, range_end)

    def get_available_slots(
        self,
        therapist_id: str,
        day: date | datetime,
        exclude_booking_id: str | None = None,
    ) -> list[TimeSlot]:
        availability = self.get_availability(therapist_id)

        day_start = start_of_day(day)
        day_end = end_of_day(day)
        bookings = self.get_bookings(therapist_id, day_start, day_end)
        if exclude_booking_id:
            bookings = [booking for booking in bookings if booking.id != exclude_booking_id]
        busy_intervals = self.get_busy_intervals(therapist_id, day_start, day_end)

        return generate_slots(day_start, availability, busy_intervals, bookings, now=self.clock())

    def get_available_dates(self, therapist_id: str, days_ahead: int = config.CALENDAR_DAYS) -> list[datetime]:
        return candidate_dates(self.get_availability(therapist_id), days_ahead, now=self.clock())

    # Write path

    def save_availability(self, therapist_id: str, rules: list[AvailabilityRuleData]) -> None:
        self._require_store().replace_availability_rules(therapist_id, rules)
        logger.info('Saved %d availability rules for therapist %s', len(rules), therapist_id)

    def create_booking(self, data: BookingData) -> str:
        store = self._require_store()
        session_start = data.session_start
        existing = store.fetch_bookings(data.therapist_id, start_of_day(session_start), end_of_day(session_start))

        if has_start_conflict(existing, session_start):
            logger.warning('Booking conflict for therapist %s at %s', data.therapist_id, session_start.isoformat())
            raise ConflictError(SLOT_TAKEN_MESSAGE)

        record = data.model_copy(
            update={
                'status': BookingStatus.CONFIRMED,
                'payment_status': PaymentStatus.PAID,
                'created_at': self.clock(),
            }
        )
        booking_id = store.insert_booking(record)
        logger.info('Created booking %s for therapist %s at %s', booking_id, data.therapist_id, session_start.isoformat())
        return booking_id

    def reschedule_booking(self, booking_id: str, new_start: datetime, therapist_id: str) -> None:
        store = self._require_store()
        existing = store.fetch_bookings(therapist_id, start_of_day(new_start), end_of_day(new_start))

        if has_start_conflict(existing, new_start, exclude_booking_id=booking_id):
            logger.warning('Reschedule conflict for booking %s at %s', booking_id, new_start.isoformat())
            raise ConflictError(SLOT_UNAVAILABLE_MESSAGE)

        store.update_booking(
            booking_id,
            {
                'session_start': new_start,
                'status': BookingStatus.CONFIRMED,
                'updated_at': self.clock(),
            },
        )
        logger.info('Rescheduled booking %s to %s', booking_id, new_start.isoformat())

    def cancel_booking(self, booking_id: str) -> None:
        self._require_store().update_booking(
            booking_id,
            {'status': BookingStatus.CANCELLED, 'updated_at': self.clock()},
        )
        logger.info('Cancelled booking %s', booking_id)

    def complete_booking(self, booking_id: str) -> None:
        self._require_store().update_booking(
            booking_id,
            {'status': BookingStatus.COMPLETED, 'updated_at': self.clock()},
        )

    def get_booking(self, booking_id: str) -> BookingData:
        booking = self._require_store().get_booking(booking_id)
        if booking is None:
            raise BookingNotFound(booking_id)
        return booking

    def submit_feedback(self, data: FeedbackData) -> str:
        """Store the feedback, then fold its rating into the therapist's mean.

        The two writes are not atomic. If the rating update fails the feedback
        stays recorded and the error reaches the caller.
        """
        store = self._require_store()
        feedback_id = store.insert_feedback(data.model_copy(update={'created_at': self.clock()}))

        therapist = store.get_therapist(data.therapist_id)
        if therapist is not None:
            rating, review_count = running_mean(therapist.rating or 0.0, therapist.review_count or 0, data.rating)
            store.update_therapist_rating(data.therapist_id, rating, review_count)

        return feedback_id

    def add_busy_interval(self, data: BusyIntervalData) -> str:
        return self._require_store().insert_busy_interval(data)

    def remove_busy_interval(self, therapist_id: str, busy_id: str) -> bool:
        return self._require_store().delete_busy_interval(therapist_id, busy_id)

    def _require_store(self) -> BookingStore:
        if self.store is None:
            raise StorageUnavailable('Database not initialized.')
        return self.store


def session_end(booking: BookingData) -> datetime:
    return booking.session_start + timedelta(minutes=booking.duration_minutes)
