import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError

from clinic_agenda.core import config
from clinic_agenda.database import Base, engine, ensure_appointment_schema
from clinic_agenda.models import appointment, patient, user  # noqa: F401
from clinic_agenda.routes import agenda_routes

app = FastAPI(title='Clinic Agenda API')

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=['*'],
    allow_headers=['*'],
)

logger = logging.getLogger(__name__)


@app.on_event('startup')
def initialize_database() -> None:
    config.validate_runtime_config()
    try:
        Base.metadata.create_all(bind=engine)
        ensure_appointment_schema()
    except SQLAlchemyError:
        logger.exception('Database initialization failed. Check DATABASE_URL and database credentials.')


@app.get('/')
def root():
    return {'status': 'Clinic Agenda API Running'}


app.include_router(agenda_routes.router, prefix='/agenda')
