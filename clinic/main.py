import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError

from clinic.core import config
from clinic.repositories.factory import get_repository
from clinic.routes import appointment_routes, doctor_routes, patient_routes

logging.basicConfig(
    level=config.LOG_LEVEL,
    format='%(asctime)s %(levelname)s %(name)s: %(message)s',
)

app = FastAPI(title='Clinic Appointments')

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=['*'],
    allow_headers=['*'],
)

logger = logging.getLogger(__name__)


@app.on_event('startup')
def initialize_storage() -> None:
    try:
        get_repository()
    except (SQLAlchemyError, OSError, ValueError):
        logger.exception('Storage initialization failed. Check STORAGE_BACKEND and its connection settings.')


@app.get('/')
def root():
    return {'status': 'Clinic API Running', 'storage_backend': config.STORAGE_BACKEND}


app.include_router(doctor_routes.router, prefix='/doctors')
app.include_router(patient_routes.router, prefix='/patients')
app.include_router(appointment_routes.router, prefix='/appointments')
