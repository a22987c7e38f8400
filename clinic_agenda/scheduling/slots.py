"""
Slot Grid

Builds the agenda's fixed time grid and the start times still free for a
given appointment length.
"""

import math
from typing import Iterable

from clinic_agenda.core import config
from clinic_agenda.scheduling.dates import format_minutes, to_calendar_date, to_minutes
from clinic_agenda.scheduling.errors import InvalidRangeError
from clinic_agenda.scheduling.status import is_canceled

DURATION_OPTIONS = (30, 45, 60, 90, 120)


def slot_length(slot_minutes: int | None = None) -> int:
    if slot_minutes is None:
        return config.SLOT_DURATION_MINUTES
    if slot_minutes <= 0:
        raise InvalidRangeError(f'Slot length must be a positive number of minutes, got {slot_minutes}.')
    return slot_minutes


def time_slots(
    day_start: str | None = None,
    day_end: str | None = None,
    slot_minutes: int | None = None,
) -> list[str]:
    """``HH:MM`` labels from ``day_start`` to ``day_end`` inclusive."""
    step = slot_length(slot_minutes)
    first = to_minutes(day_start or config.AGENDA_DAY_START)
    last = to_minutes(day_end or config.AGENDA_DAY_END)

    return [format_minutes(minute) for minute in range(first, last + 1, step)]


def slots_for_duration(duration_minutes: int, slot_minutes: int | None = None) -> int:
    step = slot_length(slot_minutes)
    return math.ceil(duration_minutes / step)


def _booked_intervals(day, appointments: Iterable) -> list[tuple[int, int]]:
    target_day = to_calendar_date(day)
    intervals = []
    for appointment in appointments:
        if is_canceled(appointment) or to_calendar_date(appointment.date) != target_day:
            continue
        start = to_minutes(appointment.time)
        duration = appointment.duration_minutes or config.SLOT_DURATION_MINUTES
        intervals.append((start, start + duration))
    return intervals


def available_time_slots(
    day,
    duration_minutes: int,
    appointments: Iterable = (),
    working_hours: tuple[str, str] | None = None,
) -> list[str]:
    """
    Grid labels where an appointment of ``duration_minutes`` fits.

    A start is rejected when it falls outside ``working_hours``, when the
    appointment would run past the end of the grid, or when its interval
    overlaps a non-canceled appointment on ``day``.
    """
    grid = time_slots()
    opening, closing = working_hours or (config.AGENDA_DAY_START, config.AGENDA_DAY_END)
    opening_minute = to_minutes(opening)
    closing_minute = to_minutes(closing)
    needed = slots_for_duration(duration_minutes)
    booked = _booked_intervals(day, appointments)

    available = []
    for index, label in enumerate(grid):
        start = to_minutes(label)
        if start < opening_minute or start > closing_minute:
            continue
        if index + needed > len(grid):
            continue

        end = start + duration_minutes
        if any(start < booked_end and end > booked_start for booked_start, booked_end in booked):
            continue
        available.append(label)

    return available
