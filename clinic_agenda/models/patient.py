"""Patient model definitions."""

from sqlalchemy import Column, Integer, String
from clinic_agenda.database import Base


class Patient(Base):
    """Minimal patient record, used to label agenda conflicts."""
    __tablename__ = "patients"

    id = Column(Integer, primary_key=True)
    clinic_id = Column(String, nullable=False, index=True)
    name = Column(String, nullable=False)
