import logging
from contextlib import contextmanager
from datetime import datetime
from threading import Lock
from typing import Iterator

from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Query, Session

from clinic.database import build_session_factory, create_schema, seed_sample_data
from clinic.models.appointment import Appointment
from clinic.models.doctor import Doctor
from clinic.models.patient import Patient
from clinic.repositories.base import INVALID_ID, ClinicRepository, DeletePolicy
from clinic.schemas import AppointmentView, DoctorRecord, PatientRecord, to_naive_local


logger = logging.getLogger(__name__)


class SqlClinicRepository(ClinicRepository):
    """Clinic data access over a relational database (server or embedded)."""

    def __init__(self, engine: Engine, delete_policy: DeletePolicy = DeletePolicy.BLOCK) -> None:
        super().__init__(delete_policy)
        self.engine = engine
        self._session_factory = build_session_factory(engine)
        self._schema_lock = Lock()
        self._schema_checked = False

    def initialize(self, seed: bool = False) -> None:
        if self._schema_checked:
            return

        with self._schema_lock:
            if self._schema_checked:
                return

            try:
                create_schema(self.engine)
            except SQLAlchemyError:
                logger.exception('Error creating clinic schema.')
                raise

            if seed:
                with self._transaction('seeding sample data') as db:
                    seed_sample_data(db)

            self._schema_checked = True

    @contextmanager
    def _transaction(self, action: str) -> Iterator[Session]:
        db = self._session_factory()
        try:
            yield db
            db.commit()
        except SQLAlchemyError:
            db.rollback()
            logger.exception('Error %s.', action)
            raise
        finally:
            db.close()

    def _appointment_views(self, db: Session) -> Query:
        return db.query(
            Appointment.id,
            Appointment.appointment_date,
            Appointment.notes,
            Doctor.full_name.label('doctor_name'),
            Doctor.specialty,
            Patient.full_name.label('patient_name'),
            Patient.email.label('patient_email'),
            Appointment.doctor_id,
            Appointment.patient_id,
        ).join(
            Doctor, Appointment.doctor_id == Doctor.id,
        ).join(
            Patient, Appointment.patient_id == Patient.id,
        )

    def _delete_with_dependents(self, db: Session, record, dependents: Query) -> bool:
        if dependents.first() is not None:
            if self.delete_policy == DeletePolicy.BLOCK:
                return False
            dependents.delete(synchronize_session=False)

        db.delete(record)
        return True

    # Doctors

    def get_all_doctors(self) -> list[DoctorRecord]:
        with self._transaction('getting doctors') as db:
            doctors = db.query(Doctor).order_by(Doctor.id.asc()).all()
            return [DoctorRecord.model_validate(doctor) for doctor in doctors]

    def get_available_doctors(self) -> list[DoctorRecord]:
        with self._transaction('getting available doctors') as db:
            doctors = db.query(Doctor).filter(
                Doctor.availability.is_(True),
            ).order_by(Doctor.id.asc()).all()
            return [DoctorRecord.model_validate(doctor) for doctor in doctors]

    def get_doctor_by_id(self, doctor_id: int) -> DoctorRecord | None:
        with self._transaction('getting doctor by id') as db:
            doctor = db.query(Doctor).filter(Doctor.id == doctor_id).first()
            return DoctorRecord.model_validate(doctor) if doctor else None

    def add_doctor(self, full_name: str, specialty: str, availability: bool, phone: str | None = None) -> int:
        with self._transaction('adding doctor') as db:
            doctor = Doctor(full_name=full_name, specialty=specialty, availability=availability, phone=phone)
            db.add(doctor)
            db.flush()
            return doctor.id if doctor.id is not None else INVALID_ID

    def update_doctor(
        self,
        doctor_id: int,
        full_name: str,
        specialty: str,
        availability: bool,
        phone: str | None = None,
    ) -> bool:
        with self._transaction('updating doctor') as db:
            doctor = db.query(Doctor).filter(Doctor.id == doctor_id).first()
            if not doctor:
                return False

            doctor.full_name = full_name
            doctor.specialty = specialty
            doctor.availability = availability
            doctor.phone = phone
            return True

    def update_doctor_availability(self, doctor_id: int, availability: bool) -> bool:
        with self._transaction('updating doctor availability') as db:
            doctor = db.query(Doctor).filter(Doctor.id == doctor_id).first()
            if not doctor:
                return False

            doctor.availability = availability
            return True

    def delete_doctor(self, doctor_id: int) -> bool:
        with self._transaction('deleting doctor') as db:
            doctor = db.query(Doctor).filter(Doctor.id == doctor_id).first()
            if not doctor:
                return False

            dependents = db.query(Appointment).filter(Appointment.doctor_id == doctor_id)
            return self._delete_with_dependents(db, doctor, dependents)

    # Patients

    def get_all_patients(self) -> list[PatientRecord]:
        with self._transaction('getting patients') as db:
            patients = db.query(Patient).order_by(Patient.id.asc()).all()
            return [PatientRecord.model_validate(patient) for patient in patients]

    def get_patient_by_id(self, patient_id: int) -> PatientRecord | None:
        with self._transaction('getting patient by id') as db:
            patient = db.query(Patient).filter(Patient.id == patient_id).first()
            return PatientRecord.model_validate(patient) if patient else None

    def add_patient(self, full_name: str, email: str) -> int:
        with self._transaction('adding patient') as db:
            patient = Patient(full_name=full_name, email=email)
            db.add(patient)
            db.flush()
            return patient.id if patient.id is not None else INVALID_ID

    def update_patient(self, patient_id: int, full_name: str, email: str) -> bool:
        with self._transaction('updating patient') as db:
            patient = db.query(Patient).filter(Patient.id == patient_id).first()
            if not patient:
                return False

            patient.full_name = full_name
            patient.email = email
            return True

    def delete_patient(self, patient_id: int) -> bool:
        with self._transaction('deleting patient') as db:
            patient = db.query(Patient).filter(Patient.id == patient_id).first()
            if not patient:
                return False

            dependents = db.query(Appointment).filter(Appointment.patient_id == patient_id)
            return self._delete_with_dependents(db, patient, dependents)

    # Appointments

    def create_appointment(
        self,
        doctor_id: int,
        patient_id: int,
        appointment_date: datetime,
        notes: str | None,
    ) -> int:
        with self._transaction('creating appointment') as db:
            appointment = Appointment(
                doctor_id=doctor_id,
                patient_id=patient_id,
                appointment_date=to_naive_local(appointment_date),
                notes=notes,
            )
            db.add(appointment)
            db.flush()
            return appointment.id if appointment.id is not None else INVALID_ID

    def get_all_appointments(self) -> list[AppointmentView]:
        with self._transaction('getting appointments') as db:
            rows = self._appointment_views(db).order_by(Appointment.appointment_date.desc()).all()
            return [AppointmentView.model_validate(row._asdict()) for row in rows]

    def get_appointments_by_doctor(self, doctor_id: int) -> list[AppointmentView]:
        with self._transaction('getting appointments by doctor') as db:
            rows = self._appointment_views(db).filter(
                Appointment.doctor_id == doctor_id,
            ).order_by(Appointment.appointment_date.desc()).all()
            return [AppointmentView.model_validate(row._asdict()) for row in rows]

    def get_appointments_by_patient(self, patient_id: int) -> list[AppointmentView]:
        with self._transaction('getting appointments by patient') as db:
            rows = self._appointment_views(db).filter(
                Appointment.patient_id == patient_id,
            ).order_by(Appointment.appointment_date.desc()).all()
            return [AppointmentView.model_validate(row._asdict()) for row in rows]

    def get_appointment_by_id(self, appointment_id: int) -> AppointmentView | None:
        with self._transaction('getting appointment by id') as db:
            row = self._appointment_views(db).filter(Appointment.id == appointment_id).first()
            return AppointmentView.model_validate(row._asdict()) if row else None

    def update_appointment(
        self,
        appointment_id: int,
        doctor_id: int,
        patient_id: int,
        appointment_date: datetime,
        notes: str | None,
    ) -> bool:
        with self._transaction('updating appointment') as db:
            appointment = db.query(Appointment).filter(Appointment.id == appointment_id).first()
            if not appointment:
                return False

            appointment.doctor_id = doctor_id
            appointment.patient_id = patient_id
            appointment.appointment_date = to_naive_local(appointment_date)
            appointment.notes = notes
            return True

    def delete_appointment(self, appointment_id: int) -> bool:
        with self._transaction('deleting appointment') as db:
            deleted = db.query(Appointment).filter(Appointment.id == appointment_id).delete(
                synchronize_session=False,
            )
            return deleted > 0
