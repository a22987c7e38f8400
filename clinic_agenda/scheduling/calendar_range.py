"""
Calendar Range Builder

Turns a reference date and a view mode into the inclusive date range the
agenda displays. Weeks follow ISO-8601: Monday through Sunday.
"""

from datetime import date, timedelta

from clinic_agenda.scheduling.dates import to_calendar_date
from clinic_agenda.scheduling.errors import InvalidRangeError

DAY_VIEW = 'day'
WEEK_VIEW = 'week'
VIEW_MODES = (DAY_VIEW, WEEK_VIEW)

NAVIGATION_DIRECTIONS = ('prev', 'next', 'today')


def _validate_view_mode(view_mode: str) -> str:
    if view_mode not in VIEW_MODES:
        raise InvalidRangeError(f'Unsupported view mode: {view_mode!r}.')
    return view_mode


def week_start(reference_date) -> date:
    day = to_calendar_date(reference_date)
    return day - timedelta(days=day.weekday())


def build_calendar_range(reference_date, view_mode: str) -> tuple[date, date]:
    """
    Inclusive ``(range_start, range_end)`` for the agenda view.

    Args:
        reference_date: ``date`` or ``YYYY-MM-DD`` string
        view_mode: ``"day"`` or ``"week"``

    Raises:
        InvalidRangeError: malformed date or unsupported view mode
    """
    _validate_view_mode(view_mode)
    day = to_calendar_date(reference_date)

    if view_mode == DAY_VIEW:
        return day, day

    start = week_start(day)
    return start, start + timedelta(days=6)


def week_days(reference_date) -> list[date]:
    start = week_start(reference_date)
    return [start + timedelta(days=offset) for offset in range(7)]


def navigate(reference_date, direction: str, view_mode: str, today: date | None = None) -> date:
    """Move the reference date one view unit back or forward, or jump to today."""
    _validate_view_mode(view_mode)
    if direction not in NAVIGATION_DIRECTIONS:
        raise InvalidRangeError(f'Unsupported navigation direction: {direction!r}.')

    if direction == 'today':
        return to_calendar_date(today or date.today())

    step = timedelta(days=1) if view_mode == DAY_VIEW else timedelta(weeks=1)
    day = to_calendar_date(reference_date)
    return day - step if direction == 'prev' else day + step
