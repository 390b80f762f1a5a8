"""
Slot generation for a single calendar day.

Each non-break availability rule for the day is walked in fixed session-length
steps. A slot is only emitted when it fits entirely inside its rule's window;
the remainder of a window that is not a whole multiple of the session length
is dropped.

Every emitted slot is then checked independently against:
- the minimum booking notice (too soon),
- the break rules of the same weekday,
- ad-hoc busy intervals,
- non-cancelled bookings.

Overlapping availability rules yield duplicate start times. They are kept
as-is; callers that need unique starts must dedupe upstream.
"""

import logging
from collections.abc import Iterable
from datetime import date, datetime, timedelta

from clinic_backend.core import config
from clinic_backend.scheduling.intervals import at_time, day_of_week, overlaps
from clinic_backend.scheduling.types import BookingStatus, TimeSlot

logger = logging.getLogger(__name__)

SESSION_DURATION = timedelta(minutes=config.SESSION_DURATION_MINUTES)
MIN_BOOKING_NOTICE = timedelta(hours=config.MIN_BOOKING_HOURS)


def generate_slots(
    day: date | datetime,
    rules: Iterable,
    busy_intervals: Iterable,
    bookings: Iterable,
    now: datetime | None = None,
    session_duration: timedelta = SESSION_DURATION,
    min_notice: timedelta = MIN_BOOKING_NOTICE,
) -> list[TimeSlot]:
    now = now or datetime.now()
    earliest_start = now + min_notice
    weekday = day_of_week(day)

    day_rules = [rule for rule in rules if rule.day_of_week == weekday]
    windows = [rule for rule in day_rules if not rule.is_break]
    if not windows:
        return []

    breaks = [(at_time(day, rule.start_time), at_time(day, rule.end_time)) for rule in day_rules if rule.is_break]
    busy = [(interval.start, interval.end) for interval in busy_intervals]
    booked = [
        (booking.session_start, booking.session_start + timedelta(minutes=booking.duration_minutes), booking.id)
        for booking in bookings
        if booking.status != BookingStatus.CANCELLED
    ]

    slots: list[TimeSlot] = []
    for window in windows:
        current = at_time(day, window.start_time)
        window_end = at_time(day, window.end_time)

        while current + session_duration <= window_end:
            slot_end = current + session_duration

            is_too_soon = current < earliest_start
            is_in_break = any(overlaps(current, slot_end, start, end) for start, end in breaks)
            is_busy = any(overlaps(current, slot_end, start, end) for start, end in busy)
            is_booked = False
            for booking_start, booking_end, booking_id in booked:
                if overlaps(current, slot_end, booking_start, booking_end):
                    logger.debug(
                        'Slot %s blocked by booking %s (%s)',
                        current.strftime('%H:%M'),
                        booking_id,
                        booking_start.strftime('%H:%M'),
                    )
                    is_booked = True
                    break

            slots.append(
                TimeSlot(
                    start_time=current.strftime('%H:%M'),
                    date=current,
                    is_available=not (is_too_soon or is_in_break or is_busy or is_booked),
                )
            )
            current = slot_end

    slots.sort(key=lambda slot: slot.date)
    return slots
