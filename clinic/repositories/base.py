"""Storage-independent interface of the clinic data access layer."""

from abc import ABC, abstractmethod
from datetime import datetime
from enum import Enum

from clinic.schemas import AppointmentView, DoctorRecord, PatientRecord


INVALID_ID = -1


class DeletePolicy(str, Enum):
    """What happens to appointments when their doctor or patient is deleted."""
    BLOCK = 'block'
    CASCADE = 'cascade'


class ClinicRepository(ABC):
    """Doctor, patient and appointment operations shared by every backend.

    Lookups return ``None`` for missing records, mutations return ``False``
    when the target does not exist, and creations return the new identifier.
    Storage errors are logged and re-raised.
    """

    def __init__(self, delete_policy: DeletePolicy) -> None:
        self.delete_policy = DeletePolicy(delete_policy)

    def initialize(self, seed: bool = False) -> None:
        """Prepare the underlying storage, optionally seeding sample data."""

    # Doctors

    @abstractmethod
    def get_all_doctors(self) -> list[DoctorRecord]: ...

    @abstractmethod
    def get_available_doctors(self) -> list[DoctorRecord]: ...

    @abstractmethod
    def get_doctor_by_id(self, doctor_id: int) -> DoctorRecord | None: ...

    @abstractmethod
    def add_doctor(self, full_name: str, specialty: str, availability: bool, phone: str | None = None) -> int: ...

    @abstractmethod
    def update_doctor(
        self,
        doctor_id: int,
        full_name: str,
        specialty: str,
        availability: bool,
        phone: str | None = None,
    ) -> bool: ...

    @abstractmethod
    def update_doctor_availability(self, doctor_id: int, availability: bool) -> bool: ...

    @abstractmethod
    def delete_doctor(self, doctor_id: int) -> bool: ...

    # Patients

    @abstractmethod
    def get_all_patients(self) -> list[PatientRecord]: ...

    @abstractmethod
    def get_patient_by_id(self, patient_id: int) -> PatientRecord | None: ...

    @abstractmethod
    def add_patient(self, full_name: str, email: str) -> int: ...

    @abstractmethod
    def update_patient(self, patient_id: int, full_name: str, email: str) -> bool: ...

    @abstractmethod
    def delete_patient(self, patient_id: int) -> bool: ...

    # Appointments

    @abstractmethod
    def create_appointment(
        self,
        doctor_id: int,
        patient_id: int,
        appointment_date: datetime,
        notes: str | None,
    ) -> int: ...

    @abstractmethod
    def get_all_appointments(self) -> list[AppointmentView]: ...

    @abstractmethod
    def get_appointments_by_doctor(self, doctor_id: int) -> list[AppointmentView]: ...

    @abstractmethod
    def get_appointments_by_patient(self, patient_id: int) -> list[AppointmentView]: ...

    @abstractmethod
    def get_appointment_by_id(self, appointment_id: int) -> AppointmentView | None: ...

    @abstractmethod
    def update_appointment(
        self,
        appointment_id: int,
        doctor_id: int,
        patient_id: int,
        appointment_date: datetime,
        notes: str | None,
    ) -> bool: ...

    @abstractmethod
    def delete_appointment(self, appointment_id: int) -> bool: ...

    def search_appointments(self, search_text: str) -> list[AppointmentView]:
        return [view for view in self.get_all_appointments() if view.matches(search_text)]
