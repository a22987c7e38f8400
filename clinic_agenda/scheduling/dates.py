"""Timezone-naive date and wall-clock helpers.

Calendar dates are always rebuilt from (year, month, day) integers. ISO
strings are split by hand instead of going through a datetime parser, so a
``2024-01-01`` appointment stays on January 1st whatever the host timezone.
"""

from datetime import date, datetime, time

from clinic_agenda.scheduling.errors import InvalidRangeError

MINUTES_PER_DAY = 24 * 60


def to_calendar_date(value) -> date:
    if isinstance(value, datetime):
        return date(value.year, value.month, value.day)
    if isinstance(value, date):
        return date(value.year, value.month, value.day)
    if isinstance(value, str):
        # "2024-06-13" or "2024-06-13T00:00:00"; anything after the day is ignored.
        head = value.strip().split('T', 1)[0].split(' ', 1)[0]
        parts = head.split('-')
        if len(parts) != 3:
            raise InvalidRangeError(f'Invalid calendar date: {value!r}.')
        try:
            year, month, day = (int(part) for part in parts)
            return date(year, month, day)
        except ValueError as exc:
            raise InvalidRangeError(f'Invalid calendar date: {value!r}.') from exc
    raise InvalidRangeError(f'Invalid calendar date: {value!r}.')


def to_minutes(value) -> int:
    """Minutes since midnight for a ``time`` or an ``HH:MM[:SS]`` string."""
    if isinstance(value, time):
        return value.hour * 60 + value.minute
    if isinstance(value, str):
        parts = value.strip().split(':')
        if len(parts) not in (2, 3):
            raise InvalidRangeError(f'Invalid time of day: {value!r}.')
        try:
            hours, minutes = int(parts[0]), int(parts[1])
        except ValueError as exc:
            raise InvalidRangeError(f'Invalid time of day: {value!r}.') from exc
        if not (0 <= hours < 24 and 0 <= minutes < 60):
            raise InvalidRangeError(f'Invalid time of day: {value!r}.')
        return hours * 60 + minutes
    raise InvalidRangeError(f'Invalid time of day: {value!r}.')


def to_wall_time(value) -> time:
    minutes = to_minutes(value)
    return time(minutes // 60, minutes % 60)


def format_minutes(minutes: int) -> str:
    return f'{minutes // 60:02d}:{minutes % 60:02d}'
