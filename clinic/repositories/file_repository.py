import json
import logging
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Iterator

from pydantic import BaseModel, ValidationError

from clinic.repositories.base import ClinicRepository, DeletePolicy
from clinic.schemas import AppointmentRecord, AppointmentView, DoctorRecord, PatientRecord, to_naive_local
from clinic.seed import SAMPLE_DOCTORS, SAMPLE_PATIENTS


logger = logging.getLogger(__name__)


class _Collection:
    """One entity type held in memory and mirrored to a JSON file."""

    def __init__(self, path: Path, key: str, record_type: type[BaseModel]) -> None:
        self.path = path
        self.key = key
        self.record_type = record_type
        self.records: list = []
        self.last_id = 0

    def load(self) -> None:
        if not self.path.exists():
            self.records = []
            self.last_id = 0
            return

        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = json.load(f)
            self.records = [self.record_type.model_validate(item) for item in data.get(self.key, [])]
            self.last_id = int(data.get('last_id', 0))
        except (OSError, ValueError, ValidationError):
            logger.exception('Error loading %s from %s.', self.key, self.path)
            raise

    def save(self) -> None:
        payload = {
            'last_id': self.last_id,
            self.key: [record.model_dump(mode='json', exclude={'first_name', 'last_name'}) for record in self.records],
        }

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            temp_file = self.path.with_suffix('.tmp')
            with open(temp_file, 'w', encoding='utf-8') as f:
                json.dump(payload, f, indent=2)
            temp_file.replace(self.path)
        except OSError:
            logger.exception('Error saving %s to %s.', self.key, self.path)
            raise

    @contextmanager
    def rollback_on_error(self) -> Iterator[None]:
        """Restore the in-memory records and last id if the enclosed save fails."""
        records = [record.model_copy() for record in self.records]
        last_id = self.last_id
        try:
            yield
        except (OSError, ValueError):
            self.records = records
            self.last_id = last_id
            raise

    def next_id(self) -> int:
        highest = max((record.id for record in self.records), default=0)
        self.last_id = max(highest, self.last_id) + 1
        return self.last_id

    def find(self, record_id: int):
        return next((record for record in self.records if record.id == record_id), None)


class FileClinicRepository(ClinicRepository):
    """Clinic data access over three JSON files in a data directory.

    The collections are loaded once and every mutation saves the files it
    touched. Saves across files are not atomic as a group.
    """

    def __init__(self, data_dir: str | Path, delete_policy: DeletePolicy = DeletePolicy.CASCADE) -> None:
        super().__init__(delete_policy)
        self.data_dir = Path(data_dir)
        self.doctors = _Collection(self.data_dir / 'doctors.json', 'doctors', DoctorRecord)
        self.patients = _Collection(self.data_dir / 'patients.json', 'patients', PatientRecord)
        self.appointments = _Collection(self.data_dir / 'appointments.json', 'appointments', AppointmentRecord)
        self._load()

    def _load(self) -> None:
        self.doctors.load()
        self.patients.load()
        self.appointments.load()

    def initialize(self, seed: bool = False) -> None:
        if not seed or self.doctors.records or self.patients.records:
            return

        with self.doctors.rollback_on_error():
            for sample in SAMPLE_DOCTORS:
                self.doctors.records.append(DoctorRecord(id=self.doctors.next_id(), **sample))
            self.doctors.save()

        with self.patients.rollback_on_error():
            for sample in SAMPLE_PATIENTS:
                self.patients.records.append(PatientRecord(id=self.patients.next_id(), **sample))
            self.patients.save()

        logger.info('Seeded %d doctors and %d patients.', len(SAMPLE_DOCTORS), len(SAMPLE_PATIENTS))

    def _view(self, appointment: AppointmentRecord) -> AppointmentView | None:
        doctor = self.doctors.find(appointment.doctor_id)
        patient = self.patients.find(appointment.patient_id)
        if doctor is None or patient is None:
            return None

        return AppointmentView(
            id=appointment.id,
            appointment_date=appointment.appointment_date,
            notes=appointment.notes,
            doctor_name=doctor.full_name,
            specialty=doctor.specialty,
            patient_name=patient.full_name,
            patient_email=patient.email,
            doctor_id=appointment.doctor_id,
            patient_id=appointment.patient_id,
        )

    def _views(self, appointments: list[AppointmentRecord]) -> list[AppointmentView]:
        views = [view for view in map(self._view, appointments) if view is not None]
        return sorted(views, key=lambda view: view.appointment_date, reverse=True)

    def _delete_with_dependents(self, collection: _Collection, record_id: int, dependents: list[AppointmentRecord]) -> bool:
        if dependents:
            if self.delete_policy == DeletePolicy.BLOCK:
                return False

            dependent_ids = {appointment.id for appointment in dependents}
            with self.appointments.rollback_on_error():
                self.appointments.records = [
                    appointment for appointment in self.appointments.records if appointment.id not in dependent_ids
                ]
                self.appointments.save()

        with collection.rollback_on_error():
            collection.records = [record for record in collection.records if record.id != record_id]
            collection.save()
        return True

    # Doctors

    def get_all_doctors(self) -> list[DoctorRecord]:
        return [doctor.model_copy() for doctor in sorted(self.doctors.records, key=lambda doctor: doctor.id)]

    def get_available_doctors(self) -> list[DoctorRecord]:
        return [doctor for doctor in self.get_all_doctors() if doctor.availability]

    def get_doctor_by_id(self, doctor_id: int) -> DoctorRecord | None:
        doctor = self.doctors.find(doctor_id)
        return doctor.model_copy() if doctor else None

    def add_doctor(self, full_name: str, specialty: str, availability: bool, phone: str | None = None) -> int:
        with self.doctors.rollback_on_error():
            doctor = DoctorRecord(
                id=self.doctors.next_id(),
                full_name=full_name,
                specialty=specialty,
                availability=availability,
                phone=phone,
            )
            self.doctors.records.append(doctor)
            self.doctors.save()
        return doctor.id

    def update_doctor(
        self,
        doctor_id: int,
        full_name: str,
        specialty: str,
        availability: bool,
        phone: str | None = None,
    ) -> bool:
        doctor = self.doctors.find(doctor_id)
        if doctor is None:
            return False

        with self.doctors.rollback_on_error():
            doctor.full_name = full_name
            doctor.specialty = specialty
            doctor.availability = availability
            doctor.phone = phone
            self.doctors.save()
        return True

    def update_doctor_availability(self, doctor_id: int, availability: bool) -> bool:
        doctor = self.doctors.find(doctor_id)
        if doctor is None:
            return False

        with self.doctors.rollback_on_error():
            doctor.availability = availability
            self.doctors.save()
        return True

    def delete_doctor(self, doctor_id: int) -> bool:
        if self.doctors.find(doctor_id) is None:
            return False

        dependents = [appointment for appointment in self.appointments.records if appointment.doctor_id == doctor_id]
        return self._delete_with_dependents(self.doctors, doctor_id, dependents)

    # Patients

    def get_all_patients(self) -> list[PatientRecord]:
        return [patient.model_copy() for patient in sorted(self.patients.records, key=lambda patient: patient.id)]

    def get_patient_by_id(self, patient_id: int) -> PatientRecord | None:
        patient = self.patients.find(patient_id)
        return patient.model_copy() if patient else None

    def add_patient(self, full_name: str, email: str) -> int:
        with self.patients.rollback_on_error():
            patient = PatientRecord(id=self.patients.next_id(), full_name=full_name, email=email)
            self.patients.records.append(patient)
            self.patients.save()
        return patient.id

    def update_patient(self, patient_id: int, full_name: str, email: str) -> bool:
        patient = self.patients.find(patient_id)
        if patient is None:
            return False

        with self.patients.rollback_on_error():
            patient.full_name = full_name
            patient.email = email
            self.patients.save()
        return True

    def delete_patient(self, patient_id: int) -> bool:
        if self.patients.find(patient_id) is None:
            return False

        dependents = [appointment for appointment in self.appointments.records if appointment.patient_id == patient_id]
        return self._delete_with_dependents(self.patients, patient_id, dependents)

    # Appointments

    def create_appointment(
        self,
        doctor_id: int,
        patient_id: int,
        appointment_date: datetime,
        notes: str | None,
    ) -> int:
        with self.appointments.rollback_on_error():
            appointment = AppointmentRecord(
                id=self.appointments.next_id(),
                doctor_id=doctor_id,
                patient_id=patient_id,
                appointment_date=appointment_date,
                notes=notes,
            )
            self.appointments.records.append(appointment)
            self.appointments.save()
        return appointment.id

    def get_all_appointments(self) -> list[AppointmentView]:
        return self._views(self.appointments.records)

    def get_appointments_by_doctor(self, doctor_id: int) -> list[AppointmentView]:
        return self._views([
            appointment for appointment in self.appointments.records if appointment.doctor_id == doctor_id
        ])

    def get_appointments_by_patient(self, patient_id: int) -> list[AppointmentView]:
        return self._views([
            appointment for appointment in self.appointments.records if appointment.patient_id == patient_id
        ])

    def get_appointment_by_id(self, appointment_id: int) -> AppointmentView | None:
        appointment = self.appointments.find(appointment_id)
        return self._view(appointment) if appointment else None

    def update_appointment(
        self,
        appointment_id: int,
        doctor_id: int,
        patient_id: int,
        appointment_date: datetime,
        notes: str | None,
    ) -> bool:
        appointment = self.appointments.find(appointment_id)
        if appointment is None:
            return False

        with self.appointments.rollback_on_error():
            appointment.doctor_id = doctor_id
            appointment.patient_id = patient_id
            appointment.appointment_date = to_naive_local(appointment_date)
            appointment.notes = notes
            self.appointments.save()
        return True

    def delete_appointment(self, appointment_id: int) -> bool:
        if self.appointments.find(appointment_id) is None:
            return False

        with self.appointments.rollback_on_error():
            self.appointments.records = [
                appointment for appointment in self.appointments.records if appointment.id != appointment_id
            ]
            self.appointments.save()
        return True
