"""
Appointment Filter

Selects the appointments visible in a calendar range, optionally narrowed to
one professional and one room. Input order is preserved.
"""

from datetime import date
from typing import Iterable, Sequence

from clinic_agenda.scheduling.dates import to_calendar_date, to_minutes

ALL = 'all'


def _matches(filter_value, candidate) -> bool:
    if filter_value is None or filter_value == ALL:
        return True
    return candidate is not None and str(candidate) == str(filter_value)


def filter_appointments(
    appointments: Iterable,
    date_range: tuple[date, date],
    professional_filter=ALL,
    room_filter=ALL,
) -> list:
    range_start = to_calendar_date(date_range[0])
    range_end = to_calendar_date(date_range[1])

    visible = []
    for appointment in appointments:
        appointment_date = to_calendar_date(appointment.date)
        if not range_start <= appointment_date <= range_end:
            continue
        if not _matches(professional_filter, appointment.professional_id):
            continue
        if not _matches(room_filter, appointment.room_id):
            continue
        visible.append(appointment)

    return visible


def appointment_for_slot(appointments: Sequence, day, slot_time):
    """First appointment starting exactly at ``slot_time`` on ``day`` (minute resolution)."""
    target_day = to_calendar_date(day)
    target_minute = to_minutes(slot_time)

    for appointment in appointments:
        if to_calendar_date(appointment.date) != target_day:
            continue
        if to_minutes(appointment.time) == target_minute:
            return appointment

    return None
