from datetime import date, timedelta

import pytest

from clinic_agenda.scheduling.calendar_range import build_calendar_range, navigate, week_days
from clinic_agenda.scheduling.errors import InvalidRangeError


def test_week_range_runs_monday_to_sunday() -> None:
    assert build_calendar_range(date(2024, 6, 13), 'week') == (date(2024, 6, 10), date(2024, 6, 16))


@pytest.mark.parametrize('reference_date', [date(2024, 6, 10), date(2024, 6, 16), '2024-06-13'])
def test_week_range_includes_reference_date_on_boundaries(reference_date) -> None:
    start, end = build_calendar_range(reference_date, 'week')

    assert (start, end) == (date(2024, 6, 10), date(2024, 6, 16))
    assert start.weekday() == 0
    assert end.weekday() == 6


def test_week_range_holds_for_every_day_of_a_year() -> None:
    day = date(2024, 1, 1)
    while day.year == 2024:
        start, end = build_calendar_range(day, 'week')
        assert start <= day <= end
        assert end - start == timedelta(days=6)
        assert start.weekday() == 0
        day += timedelta(days=1)


def test_week_range_crosses_year_boundary() -> None:
    assert build_calendar_range(date(2025, 1, 1), 'week') == (date(2024, 12, 30), date(2025, 1, 5))


def test_day_range_collapses_to_reference_date() -> None:
    assert build_calendar_range(date(2024, 6, 13), 'day') == (date(2024, 6, 13), date(2024, 6, 13))


def test_range_is_idempotent() -> None:
    assert build_calendar_range('2024-06-13', 'week') == build_calendar_range('2024-06-13', 'week')


@pytest.mark.parametrize(
    ('reference_date', 'view_mode'),
    [
        (date(2024, 6, 13), 'month'),
        ('2024-13-01', 'week'),
        ('13/06/2024', 'day'),
        (None, 'day'),
    ],
)
def test_invalid_input_fails_fast(reference_date, view_mode) -> None:
    with pytest.raises(InvalidRangeError):
        build_calendar_range(reference_date, view_mode)


def test_week_days_lists_monday_through_sunday() -> None:
    days = week_days(date(2024, 6, 13))

    assert days[0] == date(2024, 6, 10)
    assert days[-1] == date(2024, 6, 16)
    assert len(days) == 7


@pytest.mark.parametrize(
    ('direction', 'view_mode', 'expected'),
    [
        ('next', 'week', date(2024, 6, 20)),
        ('prev', 'week', date(2024, 6, 6)),
        ('next', 'day', date(2024, 6, 14)),
        ('prev', 'day', date(2024, 6, 12)),
        ('today', 'week', date(2024, 1, 1)),
    ],
)
def test_navigate_moves_one_view_unit(direction: str, view_mode: str, expected: date) -> None:
    assert navigate(date(2024, 6, 13), direction, view_mode, today=date(2024, 1, 1)) == expected


def test_navigate_rejects_unknown_direction() -> None:
    with pytest.raises(InvalidRangeError):
        navigate(date(2024, 6, 13), 'sideways', 'week')
