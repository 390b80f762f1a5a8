from datetime import datetime

from clinic_backend.scheduling.availability import default_availability
from clinic_backend.scheduling.calendar import candidate_dates
from clinic_backend.scheduling.types import AvailabilityRuleData


def test_candidate_dates_skip_sundays_with_default_template() -> None:
    # Wednesday 7 January 2026; the window runs through Tuesday 20 January.
    dates = candidate_dates(default_availability('t-1'), 14, now=datetime(2026, 1, 7, 16, 45))

    assert len(dates) == 12
    assert dates[0] == datetime(2026, 1, 7, 0, 0)
    assert dates[-1] == datetime(2026, 1, 20, 0, 0)
    assert datetime(2026, 1, 11) not in dates
    assert datetime(2026, 1, 18) not in dates


def test_candidate_dates_ignore_break_only_days() -> None:
    rules = [
        AvailabilityRuleData(id='r-1', therapist_id='t-1', day_of_week=3, start_time='09:00', end_time='12:00'),
        AvailabilityRuleData(
            id='r-2', therapist_id='t-1', day_of_week=4, start_time='12:00', end_time='13:00', is_break=True
        ),
    ]

    dates = candidate_dates(rules, 7, now=datetime(2026, 1, 7, 9, 0))

    assert dates == [datetime(2026, 1, 7)]


def test_candidate_dates_empty_without_rules() -> None:
    assert candidate_dates([], 14, now=datetime(2026, 1, 7)) == []
