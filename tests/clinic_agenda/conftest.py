import os

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

os.environ.setdefault('DATABASE_URL', 'sqlite:///./test.db')

from clinic_agenda.database import Base  # noqa: E402
from clinic_agenda.models.appointment import Appointment  # noqa: E402
from clinic_agenda.models.patient import Patient  # noqa: E402
from clinic_agenda.models.user import User  # noqa: E402

TABLES = [User.__table__, Patient.__table__, Appointment.__table__]


@pytest.fixture
def session_factory(tmp_path):
    engine = create_engine(f'sqlite:///{tmp_path / "agenda.db"}')
    testing_session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine, tables=TABLES)
    try:
        yield testing_session_local
    finally:
        Base.metadata.drop_all(bind=engine, tables=list(reversed(TABLES)))
        engine.dispose()


@pytest.fixture
def agenda_db(session_factory):
    db = session_factory()
    db.add_all(
        [
            Patient(id=1, clinic_id='clinic-a', name='Maria Silva'),
            Patient(id=2, clinic_id='clinic-a', name='João Souza'),
            Patient(id=3, clinic_id='clinic-b', name='Ana Lima'),
        ]
    )
    db.commit()
    try:
        yield db
    finally:
        db.close()
