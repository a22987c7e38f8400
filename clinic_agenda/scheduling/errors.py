"""Errors raised by the agenda engine and the agenda service."""


class AgendaError(Exception):
    """Base class for agenda failures surfaced to callers."""


class InvalidRangeError(AgendaError, ValueError):
    """Malformed calendar date, wall-clock time or unsupported view mode."""


class AppointmentNotFoundError(AgendaError, LookupError):
    def __init__(self, appointment_id):
        super().__init__(f'Appointment {appointment_id} not found.')
        self.appointment_id = appointment_id


class SlotConflictError(AgendaError):
    """A candidate date and time collides with an existing appointment."""

    def __init__(self, conflict, patient_label: str | None = None):
        self.conflict = conflict
        self.patient_label = patient_label or f'patient {conflict.patient_id}'
        super().__init__(f'This time slot is already taken by {self.patient_label}.')
