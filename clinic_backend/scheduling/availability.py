"""Weekly availability templates and display helpers."""

from clinic_backend.scheduling.types import AvailabilityRuleData

DAY_NAMES = ('Sunday', 'Monday', 'Tuesday', 'Wednesday', 'Thursday', 'Friday', 'Saturday')

DEFAULT_WORKING_DAYS = range(1, 7)
DEFAULT_DAY_BLOCKS = (
    ('morning', '09:00', '13:00', False),
    ('lunch', '13:00', '15:00', True),
    ('afternoon', '15:00', '18:00', False),
)


def default_availability(therapist_id: str) -> list[AvailabilityRuleData]:
    """Monday through Saturday, 09:00-13:00 and 15:00-18:00 with a lunch break.

    Sunday has no rules. The template is never persisted here; saving it is
    the caller's decision.
    """
    rules: list[AvailabilityRuleData] = []
    for day in DEFAULT_WORKING_DAYS:
        for label, start_time, end_time, is_break in DEFAULT_DAY_BLOCKS:
            rules.append(
                AvailabilityRuleData(
                    id=f'{therapist_id}-{day}-{label}',
                    therapist_id=therapist_id,
                    day_of_week=day,
                    start_time=start_time,
                    end_time=end_time,
                    is_break=is_break,
                )
            )
    return rules


def format_time_slot(value: str) -> str:
    hours, minutes = (int(part) for part in value.split(':'))
    period = 'PM' if hours >= 12 else 'AM'
    display_hours = hours % 12 or 12
    return f'{display_hours}:{minutes:02d} {period}'


def day_name(day_of_week: int) -> str:
    return DAY_NAMES[day_of_week]
