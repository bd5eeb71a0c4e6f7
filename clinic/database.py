import logging

from sqlalchemy import create_engine, event, inspect, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from clinic.core import config
from clinic.seed import SAMPLE_DOCTORS, SAMPLE_PATIENTS


logger = logging.getLogger(__name__)

Base = declarative_base()


def _enable_sqlite_foreign_keys(dbapi_connection, _connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute('PRAGMA foreign_keys=ON')
    cursor.close()


def build_engine(url: str) -> Engine:
    engine = create_engine(url, echo=config.SQL_ECHO)

    if engine.dialect.name == 'sqlite':
        event.listen(engine, 'connect', _enable_sqlite_foreign_keys)

    return engine


def build_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
        bind=engine,
    )


def create_schema(engine: Engine) -> None:
    # Registers the tables on Base.metadata.
    from clinic.models import appointment, doctor, patient  # noqa: F401

    Base.metadata.create_all(bind=engine)

    inspector = inspect(engine)
    existing_indexes = {index['name'] for index in inspector.get_indexes('appointments')}

    with engine.begin() as connection:
        if 'idx_appointments_doctor_date' not in existing_indexes:
            connection.execute(
                text('CREATE INDEX idx_appointments_doctor_date ON appointments(doctor_id, appointment_date)')
            )
        if 'idx_appointments_patient_date' not in existing_indexes:
            connection.execute(
                text('CREATE INDEX idx_appointments_patient_date ON appointments(patient_id, appointment_date)')
            )


def seed_sample_data(session: Session) -> bool:
    from clinic.models.doctor import Doctor
    from clinic.models.patient import Patient

    if session.query(Doctor).first() is not None or session.query(Patient).first() is not None:
        return False

    for sample in SAMPLE_DOCTORS:
        session.add(Doctor(**sample))
    for sample in SAMPLE_PATIENTS:
        session.add(Patient(**sample))

    logger.info('Seeded %d doctors and %d patients.', len(SAMPLE_DOCTORS), len(SAMPLE_PATIENTS))
    return True
