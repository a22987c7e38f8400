"""Appointment model definitions."""

from datetime import datetime

from sqlalchemy import Column, Date, DateTime, ForeignKey, Integer, String, Time
from clinic_agenda.database import Base


class Appointment(Base):
    """Represents a scheduled appointment inside one clinic."""
    __tablename__ = "appointments"

    id = Column(Integer, primary_key=True)
    clinic_id = Column(String, nullable=False, index=True)
    patient_id = Column(Integer, ForeignKey("patients.id"), nullable=False)
    professional_id = Column(String, nullable=False)
    room_id = Column(String)
    date = Column(Date, nullable=False)
    time = Column(Time, nullable=False)
    duration_minutes = Column(Integer, nullable=False, default=30)
    treatment_type = Column(String)
    status = Column(String, nullable=False, default="scheduled")
    notes = Column(String)
    whatsapp_sent_at = Column(DateTime)
    created_at = Column(DateTime, default=datetime.now)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)
