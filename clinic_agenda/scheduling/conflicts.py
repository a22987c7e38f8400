"""
Slot Conflict Detection

Checks a candidate (date, time) against an in-memory snapshot of
appointments. The check is advisory: it only sees what the caller passed in,
so the store remains the final authority against concurrent writers.

Conflicts are keyed on date and time only; room and professional are not
discriminators.
"""

from dataclasses import dataclass
from typing import Any, Iterable, Optional

from clinic_agenda.scheduling.dates import to_calendar_date, to_minutes
from clinic_agenda.scheduling.errors import AppointmentNotFoundError
from clinic_agenda.scheduling.slots import slot_length
from clinic_agenda.scheduling.status import is_canceled

WHEN_FIELDS = ('date', 'time')


@dataclass(frozen=True)
class RescheduleDecision:
    accepted: bool
    conflict: Optional[Any] = None


def _same_id(left, right) -> bool:
    return left is not None and right is not None and str(left) == str(right)


def find_conflict(
    candidate_date,
    candidate_time,
    exclude_appointment_id,
    appointments: Iterable,
    slot_minutes: int | None = None,
):
    """
    Return the first appointment starting inside the candidate slot, or None.

    The candidate occupies ``[start, start + slot_minutes)``. Canceled
    appointments and ``exclude_appointment_id`` never collide.
    """
    window = slot_length(slot_minutes)
    target_day = to_calendar_date(candidate_date)
    window_start = to_minutes(candidate_time)
    window_end = window_start + window

    for appointment in appointments:
        if _same_id(appointment.id, exclude_appointment_id):
            continue
        if is_canceled(appointment):
            continue
        if to_calendar_date(appointment.date) != target_day:
            continue
        if window_start <= to_minutes(appointment.time) < window_end:
            return appointment

    return None


def request_reschedule(appointment_id, updates: dict, appointments: list) -> RescheduleDecision:
    """
    Decide whether ``updates`` may be forwarded to persistence.

    Only updates touching ``date`` or ``time`` are checked; a missing half is
    taken from the current appointment in ``appointments``.

    Raises:
        AppointmentNotFoundError: a partial date/time update for an
            appointment that is not in the pool
    """
    if not any(field in updates for field in WHEN_FIELDS):
        return RescheduleDecision(accepted=True)

    current = next((item for item in appointments if _same_id(item.id, appointment_id)), None)
    if current is None and not all(field in updates for field in WHEN_FIELDS):
        raise AppointmentNotFoundError(appointment_id)

    candidate_date = updates['date'] if 'date' in updates else current.date
    candidate_time = updates['time'] if 'time' in updates else current.time

    conflict = find_conflict(candidate_date, candidate_time, appointment_id, appointments)
    if conflict is not None:
        return RescheduleDecision(accepted=False, conflict=conflict)

    return RescheduleDecision(accepted=True)
