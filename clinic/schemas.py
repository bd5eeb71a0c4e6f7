"""Typed records returned by the repositories."""

from datetime import datetime

from pydantic import BaseModel, computed_field, field_validator


def to_naive_local(value: datetime) -> datetime:
    """Appointment times are stored as naive local clock times."""
    if value.tzinfo is None:
        return value
    return value.astimezone().replace(tzinfo=None)


class DoctorRecord(BaseModel):
    id: int
    full_name: str
    specialty: str
    availability: bool = True
    phone: str | None = None

    class Config:
        from_attributes = True

    @computed_field
    @property
    def first_name(self) -> str:
        return self.full_name.split(' ', 1)[0]

    @computed_field
    @property
    def last_name(self) -> str:
        parts = self.full_name.split(' ', 1)
        return parts[1] if len(parts) > 1 else ''


class PatientRecord(BaseModel):
    id: int
    full_name: str
    email: str

    class Config:
        from_attributes = True


class AppointmentRecord(BaseModel):
    id: int
    doctor_id: int
    patient_id: int
    appointment_date: datetime
    notes: str | None = None

    class Config:
        from_attributes = True

    @field_validator('appointment_date')
    @classmethod
    def validate_appointment_date(cls, value: datetime) -> datetime:
        return to_naive_local(value)


class AppointmentView(BaseModel):
    """An appointment joined with its doctor and patient for display."""
    id: int
    appointment_date: datetime
    notes: str | None = None
    doctor_name: str
    specialty: str
    patient_name: str
    patient_email: str
    doctor_id: int
    patient_id: int

    def matches(self, search_text: str) -> bool:
        if not search_text.strip():
            return True
        needle = search_text.lower()
        return (
            needle in self.patient_name.lower()
            or needle in self.doctor_name.lower()
            or needle in (self.notes or '').lower()
        )
