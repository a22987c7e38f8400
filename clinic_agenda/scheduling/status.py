"""Appointment status values."""

SCHEDULED = 'scheduled'
CONFIRMED = 'confirmed'
COMPLETED = 'completed'
NO_SHOW = 'no_show'
CANCELED = 'canceled'

APPOINTMENT_STATUSES = (SCHEDULED, CONFIRMED, COMPLETED, NO_SHOW, CANCELED)

# Values stored by the previous Portuguese-language agenda.
LEGACY_STATUS_ALIASES = {
    'marcado': SCHEDULED,
    'confirmado': CONFIRMED,
    'realizado': COMPLETED,
    'faltante': NO_SHOW,
    'cancelado': CANCELED,
}


def normalize_status(value: str) -> str:
    normalized = (value or '').strip().lower()
    normalized = LEGACY_STATUS_ALIASES.get(normalized, normalized)
    if normalized not in APPOINTMENT_STATUSES:
        raise ValueError(f'Invalid appointment status: {value!r}.')
    return normalized


def is_canceled(appointment) -> bool:
    return (appointment.status or '').strip().lower() in {CANCELED, 'cancelado'}
