"""
Agenda Service

Sequences the pure scheduling engine with the clinic-scoped store:
conflict checks run against a fresh snapshot before anything is written,
and every committed write is announced on the change feed.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from clinic_agenda.database import SessionLocal
from clinic_agenda.models.appointment import Appointment
from clinic_agenda.models.patient import Patient
from clinic_agenda.notifications.whatsapp import send_appointment_message
from clinic_agenda.scheduling.calendar_range import build_calendar_range, navigate, week_days
from clinic_agenda.scheduling.changes import CREATED, UPDATED, AppointmentChangeFeed, ChangeEvent, change_feed
from clinic_agenda.scheduling.conflicts import find_conflict, request_reschedule
from clinic_agenda.scheduling.dates import to_calendar_date, to_wall_time
from clinic_agenda.scheduling.errors import AppointmentNotFoundError, SlotConflictError
from clinic_agenda.scheduling.filters import ALL, appointment_for_slot, filter_appointments
from clinic_agenda.scheduling.recurrence import recurring_dates
from clinic_agenda.scheduling.slots import available_time_slots, time_slots
from clinic_agenda.scheduling.status import SCHEDULED, normalize_status

logger = logging.getLogger(__name__)

WRITABLE_FIELDS = {
    'patient_id',
    'professional_id',
    'room_id',
    'date',
    'time',
    'duration_minutes',
    'treatment_type',
    'status',
    'notes',
    'whatsapp_sent_at',
}


def normalize_fields(data: dict) -> dict:
    unknown = set(data) - WRITABLE_FIELDS
    if unknown:
        raise ValueError(f'Unknown appointment fields: {", ".join(sorted(unknown))}.')

    normalized = dict(data)
    if 'date' in normalized:
        normalized['date'] = to_calendar_date(normalized['date'])
    if 'time' in normalized:
        normalized['time'] = to_wall_time(normalized['time'])
    if 'status' in normalized:
        normalized['status'] = normalize_status(normalized['status'])
    return normalized


class AppointmentRepository:
    """SQLAlchemy-backed appointment store; every query is scoped to one clinic."""

    def __init__(self, db: Session):
        self.db = db

    def fetch_appointments(
        self,
        clinic_id: str,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> list[Appointment]:
        query = self.db.query(Appointment).filter(Appointment.clinic_id == clinic_id)
        if start is not None:
            query = query.filter(Appointment.date >= start)
        if end is not None:
            query = query.filter(Appointment.date <= end)
        return query.order_by(Appointment.date.asc(), Appointment.time.asc(), Appointment.id.asc()).all()

    def get_appointment(self, clinic_id: str, appointment_id) -> Appointment:
        appointment = self.db.query(Appointment).filter(
            Appointment.clinic_id == clinic_id,
            Appointment.id == appointment_id,
        ).first()
        if appointment is None:
            raise AppointmentNotFoundError(appointment_id)
        return appointment

    def create_appointment(self, clinic_id: str, data: dict) -> Appointment:
        return self.create_appointments(clinic_id, [data])[0]

    def create_appointments(self, clinic_id: str, rows: list[dict]) -> list[Appointment]:
        appointments = [Appointment(clinic_id=clinic_id, **row) for row in rows]
        self.db.add_all(appointments)
        self.db.commit()
        for appointment in appointments:
            self.db.refresh(appointment)
        return appointments

    def update_appointment(self, clinic_id: str, appointment_id, partial: dict) -> Appointment:
        appointment = self.get_appointment(clinic_id, appointment_id)
        for field, value in partial.items():
            setattr(appointment, field, value)
        self.db.commit()
        self.db.refresh(appointment)
        return appointment

    def patient_label(self, clinic_id: str, patient_id) -> str:
        patient = self.db.query(Patient).filter(
            Patient.clinic_id == clinic_id,
            Patient.id == patient_id,
        ).first()
        return patient.name if patient else f'patient {patient_id}'


@dataclass(frozen=True)
class SlotCell:
    day: date
    time: str
    appointment_id: int


@dataclass(frozen=True)
class CalendarView:
    range_start: date
    range_end: date
    days: list[date]
    appointments: list[Appointment]
    cells: list[SlotCell]
    previous_date: date
    next_date: date


class AgendaService:
    def __init__(self, repository: AppointmentRepository, feed: AppointmentChangeFeed = change_feed):
        self.repository = repository
        self.feed = feed

    def calendar(
        self,
        clinic_id: str,
        reference_date,
        view_mode: str,
        professional_id=ALL,
        room_id=ALL,
    ) -> CalendarView:
        range_start, range_end = build_calendar_range(reference_date, view_mode)
        snapshot = self.repository.fetch_appointments(clinic_id, range_start, range_end)
        visible = filter_appointments(snapshot, (range_start, range_end), professional_id, room_id)
        days = [range_start] if range_start == range_end else week_days(range_start)
        cells = []
        for day in days:
            for label in time_slots():
                appointment = appointment_for_slot(visible, day, label)
                if appointment is not None:
                    cells.append(SlotCell(day, label, appointment.id))

        return CalendarView(
            range_start=range_start,
            range_end=range_end,
            days=days,
            appointments=visible,
            cells=cells,
            previous_date=navigate(range_start, 'prev', view_mode),
            next_date=navigate(range_start, 'next', view_mode),
        )

    def find_conflict(self, clinic_id: str, candidate_date, candidate_time, exclude_appointment_id=None):
        day = to_calendar_date(candidate_date)
        snapshot = self.repository.fetch_appointments(clinic_id, day, day)
        return find_conflict(day, candidate_time, exclude_appointment_id, snapshot)

    def available_times(self, clinic_id: str, day, duration_minutes: int) -> list[str]:
        # Clinic-wide pool, the same one the conflict check reads.
        target_day = to_calendar_date(day)
        snapshot = self.repository.fetch_appointments(clinic_id, target_day, target_day)
        return available_time_slots(target_day, duration_minutes, snapshot)

    def _raise_conflict(self, clinic_id: str, conflict) -> None:
        label = self.repository.patient_label(clinic_id, conflict.patient_id)
        logger.info('Slot conflict in clinic %s with appointment %s.', clinic_id, conflict.id)
        raise SlotConflictError(conflict, label)

    def create_appointment(
        self,
        clinic_id: str,
        data: dict,
        weekdays: Optional[list[int]] = None,
        recurrence_weeks: Optional[int] = None,
    ) -> list[Appointment]:
        """
        Create one appointment, or a weekly series when ``weekdays`` is given.

        Every occurrence is checked before anything is written, so a single
        conflict rejects the whole series.
        """
        fields = normalize_fields(data)
        fields.setdefault('status', SCHEDULED)

        if weekdays:
            dates = recurring_dates(fields['date'], weekdays, recurrence_weeks or 1)
        else:
            dates = [fields['date']]
        if not dates:
            raise ValueError('Recurrence produced no appointment dates.')

        snapshot = self.repository.fetch_appointments(clinic_id, dates[0], dates[-1])
        for occurrence in dates:
            conflict = find_conflict(occurrence, fields['time'], None, snapshot)
            if conflict is not None:
                self._raise_conflict(clinic_id, conflict)

        created = self.repository.create_appointments(
            clinic_id,
            [{**fields, 'date': occurrence} for occurrence in dates],
        )
        for appointment in created:
            self.feed.publish(ChangeEvent(clinic_id, appointment.id, CREATED))
        return created

    def reschedule(self, clinic_id: str, appointment_id, updates: dict) -> Appointment:
        fields = normalize_fields(updates)
        current = self.repository.get_appointment(clinic_id, appointment_id)

        candidate_date = fields.get('date', current.date)
        first, last = sorted((current.date, candidate_date))
        snapshot = self.repository.fetch_appointments(clinic_id, first, last)

        decision = request_reschedule(appointment_id, fields, snapshot)
        if not decision.accepted:
            self._raise_conflict(clinic_id, decision.conflict)

        appointment = self.repository.update_appointment(clinic_id, appointment_id, fields)
        self.feed.publish(ChangeEvent(clinic_id, appointment.id, UPDATED))
        return appointment

    def update_status(self, clinic_id: str, appointment_id, status: str) -> Appointment:
        appointment = self.repository.update_appointment(
            clinic_id,
            appointment_id,
            {'status': normalize_status(status)},
        )
        self.feed.publish(ChangeEvent(clinic_id, appointment.id, UPDATED))
        return appointment

    def mark_whatsapp_sent(self, clinic_id: str, appointment_id) -> Appointment:
        appointment = self.repository.update_appointment(
            clinic_id,
            appointment_id,
            {'whatsapp_sent_at': datetime.now()},
        )
        self.feed.publish(ChangeEvent(clinic_id, appointment.id, UPDATED))
        return appointment


def deliver_whatsapp_confirmation(clinic_id: str, appointment_id) -> None:
    """Background task: send the confirmation, then stamp ``whatsapp_sent_at``."""
    if not send_appointment_message(appointment_id, 'confirmation'):
        return

    db = SessionLocal()
    try:
        AgendaService(AppointmentRepository(db)).mark_whatsapp_sent(clinic_id, appointment_id)
    except (SQLAlchemyError, AppointmentNotFoundError):
        db.rollback()
        logger.exception('Could not record WhatsApp delivery for appointment %s.', appointment_id)
    finally:
        db.close()
