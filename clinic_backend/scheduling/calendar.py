from collections.abc import Iterable
from datetime import datetime, timedelta

from clinic_backend.core import config
from clinic_backend.scheduling.intervals import day_of_week, start_of_day


def candidate_dates(
    rules: Iterable,
    days_ahead: int = config.CALENDAR_DAYS,
    now: datetime | None = None,
) -> list[datetime]:
    """Days from today onward that have at least one working window.

    Bookings and busy intervals are not consulted; a returned day can still
    turn out fully booked.
    """
    working_days = {rule.day_of_week for rule in rules if not rule.is_break}
    today = start_of_day(now or datetime.now())

    dates: list[datetime] = []
    for offset in range(days_ahead):
        current_day = today + timedelta(days=offset)
        if day_of_week(current_day) in working_days:
            dates.append(current_day)

    return dates
