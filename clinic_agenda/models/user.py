"""User model definitions."""

from sqlalchemy import Column, Integer, String
from clinic_agenda.database import Base


class User(Base):
    """Represents an application user."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True)
    clinic_id = Column(String, nullable=False, index=True)
    role = Column(String)  # admin/professional/receptionist
