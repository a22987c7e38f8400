from datetime import date, time

import pytest

from clinic_agenda.models.appointment import Appointment
from clinic_agenda.scheduling.conflicts import find_conflict, request_reschedule
from clinic_agenda.scheduling.errors import AppointmentNotFoundError, InvalidRangeError


def make_appointment(appointment_id: int, **overrides) -> Appointment:
    fields = {
        'id': appointment_id,
        'clinic_id': 'clinic-a',
        'patient_id': appointment_id,
        'professional_id': 'p1',
        'room_id': 'r1',
        'date': date(2024, 6, 11),
        'time': time(10, 0),
        'duration_minutes': 30,
        'status': 'scheduled',
    }
    fields.update(overrides)
    return Appointment(**fields)


def test_exact_overlap_is_detected() -> None:
    existing = make_appointment(1)

    assert find_conflict(date(2024, 6, 11), '10:00', None, [existing]) is existing


def test_adjacent_slots_do_not_conflict() -> None:
    existing = make_appointment(1)

    assert find_conflict(date(2024, 6, 11), '10:30', None, [existing]) is None
    assert find_conflict(date(2024, 6, 11), '09:30', None, [existing]) is None


def test_start_inside_candidate_window_conflicts() -> None:
    existing = make_appointment(1, time=time(10, 15))

    assert find_conflict(date(2024, 6, 11), '10:00', None, [existing]) is existing


def test_explicit_window_length_widens_the_candidate_slot() -> None:
    existing = make_appointment(1, time=time(10, 45))

    assert find_conflict(date(2024, 6, 11), '10:00', None, [existing]) is None
    assert find_conflict(date(2024, 6, 11), '10:00', None, [existing], slot_minutes=60) is existing


def test_zero_window_length_is_rejected_instead_of_defaulted() -> None:
    existing = make_appointment(1)

    with pytest.raises(InvalidRangeError):
        find_conflict(date(2024, 6, 11), '10:00', None, [existing], slot_minutes=0)


def test_editing_in_place_does_not_conflict_with_itself() -> None:
    existing = make_appointment(1)

    assert find_conflict(date(2024, 6, 11), '10:00', 1, [existing]) is None
    assert find_conflict(date(2024, 6, 11), '10:00', '1', [existing]) is None


def test_different_day_never_conflicts() -> None:
    existing = make_appointment(1, date=date(2024, 6, 12))

    assert find_conflict('2024-06-11', '10:00', None, [existing]) is None


def test_string_dates_and_times_are_compared_as_calendar_values() -> None:
    existing = make_appointment(1, date='2024-06-11', time='10:00:00')

    assert find_conflict('2024-06-11', '10:00', None, [existing]) is existing


def test_canceled_appointments_free_their_slot() -> None:
    assert find_conflict(date(2024, 6, 11), '10:00', None, [make_appointment(1, status='canceled')]) is None


def test_room_is_not_a_discriminator() -> None:
    existing = make_appointment(1, room_id='r2', professional_id='p2')

    assert find_conflict(date(2024, 6, 11), '10:00', None, [existing]) is existing


def test_first_collision_wins() -> None:
    first = make_appointment(1, time=time(10, 0))
    second = make_appointment(2, time=time(10, 15))

    assert find_conflict(date(2024, 6, 11), '10:00', None, [first, second]) is first


def test_reschedule_without_date_or_time_is_accepted_without_check() -> None:
    decision = request_reschedule(99, {'notes': 'bring exams'}, [])

    assert decision.accepted is True
    assert decision.conflict is None


def test_reschedule_onto_taken_slot_is_rejected() -> None:
    moving = make_appointment(1, time=time(9, 0))
    occupied = make_appointment(2, time=time(10, 0))

    decision = request_reschedule(1, {'time': '10:00'}, [moving, occupied])

    assert decision.accepted is False
    assert decision.conflict is occupied


def test_reschedule_takes_missing_half_from_current_appointment() -> None:
    moving = make_appointment(1, date=date(2024, 6, 10), time=time(10, 0))
    occupied = make_appointment(2, date=date(2024, 6, 11), time=time(10, 0))

    decision = request_reschedule(1, {'date': date(2024, 6, 11)}, [moving, occupied])

    assert decision.conflict is occupied


def test_reschedule_in_place_is_accepted() -> None:
    current = make_appointment(1)

    assert request_reschedule(1, {'date': date(2024, 6, 11), 'time': '10:00'}, [current]).accepted is True


def test_partial_reschedule_of_unknown_appointment_raises() -> None:
    with pytest.raises(AppointmentNotFoundError):
        request_reschedule(1, {'time': '10:00'}, [])
