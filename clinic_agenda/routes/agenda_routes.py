from datetime import date, datetime, time

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, status
from pydantic import BaseModel, field_validator
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from clinic_agenda.auth.dependencies import get_current_clinic_id
from clinic_agenda.core import config
from clinic_agenda.database import SessionLocal, ensure_appointment_schema
from clinic_agenda.scheduling.errors import AppointmentNotFoundError, InvalidRangeError, SlotConflictError
from clinic_agenda.scheduling.filters import ALL
from clinic_agenda.scheduling.slots import DURATION_OPTIONS, time_slots
from clinic_agenda.scheduling.status import normalize_status
from clinic_agenda.services.agenda_service import AgendaService, AppointmentRepository, deliver_whatsapp_confirmation

router = APIRouter(tags=['agenda'])

MAX_APPOINTMENT_NOTES_LENGTH = 600
DATABASE_UNAVAILABLE_DETAIL = 'Database unavailable. Verify DATABASE_URL and database credentials.'
REQUIRED_APPOINTMENT_FIELDS = ('patient_id', 'professional_id', 'date', 'time', 'duration_minutes')

CalendarDate = date
WallTime = time


def _validate_slot_boundary(value: WallTime) -> WallTime:
    if value.minute % config.SLOT_DURATION_MINUTES != 0:
        raise ValueError(f'Times must be on {config.SLOT_DURATION_MINUTES}-minute boundaries.')
    return value.replace(second=0, microsecond=0)


def _validate_notes(value: str | None) -> str | None:
    if value is None:
        return None

    normalized = value.strip()
    if not normalized:
        return None

    if len(normalized) > MAX_APPOINTMENT_NOTES_LENGTH:
        raise ValueError(f'Notes must be {MAX_APPOINTMENT_NOTES_LENGTH} characters or fewer.')

    return normalized


class CreateAppointmentRequest(BaseModel):
    patient_id: int
    professional_id: str
    room_id: str | None = None
    date: CalendarDate
    time: WallTime
    duration_minutes: int = config.SLOT_DURATION_MINUTES
    treatment_type: str | None = None
    notes: str | None = None
    weekdays: list[int] | None = None
    recurrence_weeks: int | None = None

    @field_validator('time')
    @classmethod
    def validate_time(cls, value: WallTime) -> WallTime:
        return _validate_slot_boundary(value)

    @field_validator('duration_minutes')
    @classmethod
    def validate_duration(cls, value: int) -> int:
        if value not in DURATION_OPTIONS:
            raise ValueError('Invalid appointment duration.')
        return value

    @field_validator('notes')
    @classmethod
    def validate_notes(cls, value: str | None) -> str | None:
        return _validate_notes(value)

    @field_validator('weekdays')
    @classmethod
    def validate_weekdays(cls, value: list[int] | None) -> list[int] | None:
        if value is None:
            return None
        if not value:
            raise ValueError('Select at least one weekday for recurrence.')
        if any(weekday < 0 or weekday > 6 for weekday in value):
            raise ValueError('Weekdays must be between 0 (Monday) and 6 (Sunday).')
        return sorted(set(value))

    @field_validator('recurrence_weeks')
    @classmethod
    def validate_recurrence_weeks(cls, value: int | None) -> int | None:
        if value is None:
            return None
        if value < 1 or value > config.MAX_RECURRENCE_WEEKS:
            raise ValueError(f'Number of weeks must be between 1 and {config.MAX_RECURRENCE_WEEKS}.')
        return value


class UpdateAppointmentRequest(BaseModel):
    patient_id: int | None = None
    professional_id: str | None = None
    room_id: str | None = None
    duration_minutes: int | None = None
    treatment_type: str | None = None
    notes: str | None = None
    date: CalendarDate | None = None
    time: WallTime | None = None

    @field_validator('time')
    @classmethod
    def validate_time(cls, value: WallTime | None) -> WallTime | None:
        if value is None:
            return None
        return _validate_slot_boundary(value)

    @field_validator('duration_minutes')
    @classmethod
    def validate_duration(cls, value: int | None) -> int | None:
        if value is not None and value not in DURATION_OPTIONS:
            raise ValueError('Invalid appointment duration.')
        return value

    @field_validator('notes')
    @classmethod
    def validate_notes(cls, value: str | None) -> str | None:
        return _validate_notes(value)


class UpdateStatusRequest(BaseModel):
    status: str

    @field_validator('status')
    @classmethod
    def validate_status(cls, value: str) -> str:
        return normalize_status(value)


class AppointmentResponse(BaseModel):
    id: int
    clinic_id: str
    patient_id: int
    professional_id: str
    room_id: str | None = None
    date: CalendarDate
    time: WallTime
    duration_minutes: int
    treatment_type: str | None = None
    status: str
    notes: str | None = None
    whatsapp_sent_at: datetime | None = None

    class Config:
        from_attributes = True


class SlotCellResponse(BaseModel):
    date: CalendarDate
    time: str
    appointment_id: int


class CalendarResponse(BaseModel):
    view_mode: str
    range_start: CalendarDate
    range_end: CalendarDate
    previous_date: CalendarDate
    next_date: CalendarDate
    days: list[CalendarDate]
    appointments: list[AppointmentResponse]
    cells: list[SlotCellResponse]


class ConflictResponse(BaseModel):
    has_conflict: bool
    conflict: AppointmentResponse | None = None


class WhatsAppDispatchResponse(BaseModel):
    appointment_id: int
    queued: bool


def ensure_database_ready() -> None:
    try:
        ensure_appointment_schema()
    except SQLAlchemyError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=DATABASE_UNAVAILABLE_DETAIL,
        ) from exc


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_agenda_service(db: Session = Depends(get_db)) -> AgendaService:
    return AgendaService(AppointmentRepository(db))


def raise_for_agenda_error(exc: Exception) -> None:
    if isinstance(exc, SlotConflictError):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={
                'message': str(exc),
                'appointment_id': exc.conflict.id,
                'patient': exc.patient_label,
                'date': str(exc.conflict.date),
                'time': str(exc.conflict.time)[:5],
            },
        ) from exc
    if isinstance(exc, AppointmentNotFoundError):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail='Appointment not found.') from exc
    if isinstance(exc, (InvalidRangeError, ValueError)):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    raise exc


def raise_database_unavailable(service: AgendaService, exc: SQLAlchemyError) -> None:
    service.repository.db.rollback()
    raise HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail=DATABASE_UNAVAILABLE_DETAIL,
    ) from exc


@router.get('/time-slots', response_model=list[str])
def list_time_slots():
    return time_slots()


@router.get('/calendar', response_model=CalendarResponse)
def get_calendar(
    reference_date: str | None = Query(default=None),
    view_mode: str = Query(default=config.DEFAULT_VIEW_MODE),
    professional_id: str = Query(default=ALL),
    room_id: str = Query(default=ALL),
    clinic_id: str = Depends(get_current_clinic_id),
    service: AgendaService = Depends(get_agenda_service),
):
    ensure_database_ready()

    try:
        view = service.calendar(
            clinic_id,
            reference_date or date.today(),
            view_mode,
            professional_id=professional_id,
            room_id=room_id,
        )
    except (InvalidRangeError, ValueError) as exc:
        raise_for_agenda_error(exc)
    except SQLAlchemyError as exc:
        raise_database_unavailable(service, exc)

    return CalendarResponse(
        view_mode=view_mode,
        range_start=view.range_start,
        range_end=view.range_end,
        previous_date=view.previous_date,
        next_date=view.next_date,
        days=view.days,
        appointments=[AppointmentResponse.model_validate(item) for item in view.appointments],
        cells=[
            SlotCellResponse(date=cell.day, time=cell.time, appointment_id=cell.appointment_id)
            for cell in view.cells
        ],
    )


@router.get('/conflicts', response_model=ConflictResponse)
def check_conflict(
    candidate_date: str = Query(..., alias='date'),
    candidate_time: str = Query(..., alias='time'),
    exclude_id: int | None = Query(default=None),
    clinic_id: str = Depends(get_current_clinic_id),
    service: AgendaService = Depends(get_agenda_service),
):
    ensure_database_ready()

    try:
        conflict = service.find_conflict(clinic_id, candidate_date, candidate_time, exclude_id)
    except InvalidRangeError as exc:
        raise_for_agenda_error(exc)
    except SQLAlchemyError as exc:
        raise_database_unavailable(service, exc)

    if conflict is None:
        return ConflictResponse(has_conflict=False)
    return ConflictResponse(has_conflict=True, conflict=AppointmentResponse.model_validate(conflict))


@router.get('/available-times', response_model=list[str])
def list_available_times(
    day: str = Query(..., alias='date'),
    duration_minutes: int = Query(default=config.SLOT_DURATION_MINUTES),
    clinic_id: str = Depends(get_current_clinic_id),
    service: AgendaService = Depends(get_agenda_service),
):
    if duration_minutes not in DURATION_OPTIONS:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail='Invalid appointment duration.',
        )

    ensure_database_ready()

    try:
        return service.available_times(clinic_id, day, duration_minutes)
    except InvalidRangeError as exc:
        raise_for_agenda_error(exc)
    except SQLAlchemyError as exc:
        raise_database_unavailable(service, exc)


@router.post('/appointments', response_model=list[AppointmentResponse], status_code=status.HTTP_201_CREATED)
def create_appointment(
    data: CreateAppointmentRequest,
    clinic_id: str = Depends(get_current_clinic_id),
    service: AgendaService = Depends(get_agenda_service),
):
    ensure_database_ready()

    fields = data.model_dump(exclude={'weekdays', 'recurrence_weeks'})
    try:
        created = service.create_appointment(
            clinic_id,
            fields,
            weekdays=data.weekdays,
            recurrence_weeks=data.recurrence_weeks,
        )
    except (SlotConflictError, ValueError) as exc:
        raise_for_agenda_error(exc)
    except SQLAlchemyError as exc:
        raise_database_unavailable(service, exc)

    return [AppointmentResponse.model_validate(item) for item in created]


@router.patch('/appointments/{appointment_id}', response_model=AppointmentResponse)
def update_appointment(
    appointment_id: int,
    data: UpdateAppointmentRequest,
    clinic_id: str = Depends(get_current_clinic_id),
    service: AgendaService = Depends(get_agenda_service),
):
    updates = data.model_dump(exclude_unset=True)
    if not updates:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail='No appointment changes supplied.',
        )
    cleared = [field for field in REQUIRED_APPOINTMENT_FIELDS if field in updates and updates[field] is None]
    if cleared:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f'Required appointment fields cannot be cleared: {", ".join(cleared)}.',
        )

    ensure_database_ready()

    try:
        appointment = service.reschedule(clinic_id, appointment_id, updates)
    except (SlotConflictError, AppointmentNotFoundError, ValueError) as exc:
        raise_for_agenda_error(exc)
    except SQLAlchemyError as exc:
        raise_database_unavailable(service, exc)

    return AppointmentResponse.model_validate(appointment)


@router.patch('/appointments/{appointment_id}/status', response_model=AppointmentResponse)
def update_appointment_status(
    appointment_id: int,
    data: UpdateStatusRequest,
    clinic_id: str = Depends(get_current_clinic_id),
    service: AgendaService = Depends(get_agenda_service),
):
    ensure_database_ready()

    try:
        appointment = service.update_status(clinic_id, appointment_id, data.status)
    except (AppointmentNotFoundError, ValueError) as exc:
        raise_for_agenda_error(exc)
    except SQLAlchemyError as exc:
        raise_database_unavailable(service, exc)

    return AppointmentResponse.model_validate(appointment)


@router.post(
    '/appointments/{appointment_id}/whatsapp-confirmation',
    response_model=WhatsAppDispatchResponse,
    status_code=status.HTTP_202_ACCEPTED,
)
def send_whatsapp_confirmation(
    appointment_id: int,
    background_tasks: BackgroundTasks,
    clinic_id: str = Depends(get_current_clinic_id),
    service: AgendaService = Depends(get_agenda_service),
):
    ensure_database_ready()

    try:
        service.repository.get_appointment(clinic_id, appointment_id)
    except AppointmentNotFoundError as exc:
        raise_for_agenda_error(exc)
    except SQLAlchemyError as exc:
        raise_database_unavailable(service, exc)

    background_tasks.add_task(deliver_whatsapp_confirmation, clinic_id, appointment_id)
    return WhatsAppDispatchResponse(appointment_id=appointment_id, queued=True)
