from datetime import date, datetime, time, timedelta


def overlaps(a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime) -> bool:
    """Half-open overlap test. Intervals that only touch do not overlap."""
    return a_start < b_end and a_end > b_start


def parse_time(value: str) -> tuple[int, int]:
    hours, minutes = value.split(':')
    return int(hours), int(minutes)


def at_time(day: date | datetime, value: str) -> datetime:
    hours, minutes = parse_time(value)
    if isinstance(day, datetime):
        day = day.date()
    return datetime.combine(day, time(hours, minutes))


def day_of_week(day: date | datetime) -> int:
    # Python counts Monday as 0; rules count Sunday as 0.
    return (day.weekday() + 1) % 7


def start_of_day(moment: date | datetime) -> datetime:
    if isinstance(moment, datetime):
        moment = moment.date()
    return datetime.combine(moment, time.min)


def end_of_day(moment: date | datetime) -> datetime:
    return start_of_day(moment) + timedelta(days=1) - timedelta(microseconds=1)


def require_naive(moment: datetime) -> datetime:
    """Reject datetimes with a UTC offset; every stored time is naive local time."""
    if moment.tzinfo is not None and moment.utcoffset() is not None:
        raise ValueError('Times must be local, without a UTC offset.')
    return moment
