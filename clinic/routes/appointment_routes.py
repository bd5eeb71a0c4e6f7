from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from pydantic import BaseModel, field_validator

from clinic.repositories.base import ClinicRepository
from clinic.repositories.factory import get_repository
from clinic.routes.common import (
    REFERENCE_ERRORS,
    STORAGE_ERRORS,
    optional_text,
    reference_conflict,
    storage_unavailable,
)
from clinic.routes.doctor_routes import CreatedResponse
from clinic.schemas import AppointmentView, to_naive_local

router = APIRouter(tags=['appointments'])

MAX_APPOINTMENT_NOTES_LENGTH = 600


class AppointmentRequest(BaseModel):
    doctor_id: int
    patient_id: int
    appointment_date: datetime
    notes: str | None = None

    @field_validator('doctor_id')
    @classmethod
    def validate_doctor_id(cls, value: int) -> int:
        if value <= 0:
            raise ValueError('Please select a doctor.')
        return value

    @field_validator('patient_id')
    @classmethod
    def validate_patient_id(cls, value: int) -> int:
        if value <= 0:
            raise ValueError('Please select a patient.')
        return value

    @field_validator('appointment_date')
    @classmethod
    def validate_appointment_date(cls, value: datetime) -> datetime:
        return to_naive_local(value)

    @field_validator('notes')
    @classmethod
    def validate_notes(cls, value: str | None) -> str | None:
        normalized = optional_text(value)
        if normalized is not None and len(normalized) > MAX_APPOINTMENT_NOTES_LENGTH:
            raise ValueError(f'Notes must be {MAX_APPOINTMENT_NOTES_LENGTH} characters or fewer.')
        return normalized


def ensure_participants_exist(repository: ClinicRepository, doctor_id: int, patient_id: int) -> None:
    if repository.get_doctor_by_id(doctor_id) is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail='Doctor not found.',
        )

    if repository.get_patient_by_id(patient_id) is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail='Patient not found.',
        )


@router.get('', response_model=list[AppointmentView])
def list_appointments(
    search: str | None = Query(default=None),
    repository: ClinicRepository = Depends(get_repository),
):
    try:
        if search and search.strip():
            return repository.search_appointments(search)
        return repository.get_all_appointments()
    except STORAGE_ERRORS as exc:
        raise storage_unavailable() from exc


@router.get('/doctor/{doctor_id}', response_model=list[AppointmentView])
def list_appointments_by_doctor(doctor_id: int, repository: ClinicRepository = Depends(get_repository)):
    try:
        return repository.get_appointments_by_doctor(doctor_id)
    except STORAGE_ERRORS as exc:
        raise storage_unavailable() from exc


@router.get('/patient/{patient_id}', response_model=list[AppointmentView])
def list_appointments_by_patient(patient_id: int, repository: ClinicRepository = Depends(get_repository)):
    try:
        return repository.get_appointments_by_patient(patient_id)
    except STORAGE_ERRORS as exc:
        raise storage_unavailable() from exc


@router.get('/{appointment_id}', response_model=AppointmentView)
def get_appointment(appointment_id: int, repository: ClinicRepository = Depends(get_repository)):
    try:
        appointment = repository.get_appointment_by_id(appointment_id)
    except STORAGE_ERRORS as exc:
        raise storage_unavailable() from exc

    if appointment is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail='Appointment not found.',
        )

    return appointment


@router.post('', response_model=CreatedResponse, status_code=status.HTTP_201_CREATED)
def book_appointment(data: AppointmentRequest, repository: ClinicRepository = Depends(get_repository)):
    try:
        ensure_participants_exist(repository, data.doctor_id, data.patient_id)
        appointment_id = repository.create_appointment(
            data.doctor_id,
            data.patient_id,
            data.appointment_date,
            data.notes,
        )
    except REFERENCE_ERRORS as exc:
        raise reference_conflict() from exc
    except STORAGE_ERRORS as exc:
        raise storage_unavailable() from exc

    if appointment_id <= 0:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail='Failed to book appointment.',
        )

    return CreatedResponse(id=appointment_id, message='Appointment booked successfully!')


@router.put('/{appointment_id}', response_model=AppointmentView)
def update_appointment(
    appointment_id: int,
    data: AppointmentRequest,
    repository: ClinicRepository = Depends(get_repository),
):
    try:
        ensure_participants_exist(repository, data.doctor_id, data.patient_id)
        updated = repository.update_appointment(
            appointment_id,
            data.doctor_id,
            data.patient_id,
            data.appointment_date,
            data.notes,
        )
        appointment = repository.get_appointment_by_id(appointment_id) if updated else None
    except REFERENCE_ERRORS as exc:
        raise reference_conflict() from exc
    except STORAGE_ERRORS as exc:
        raise storage_unavailable() from exc

    if appointment is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail='Failed to update appointment.',
        )

    return appointment


@router.delete('/{appointment_id}', status_code=status.HTTP_204_NO_CONTENT)
def delete_appointment(appointment_id: int, repository: ClinicRepository = Depends(get_repository)):
    try:
        deleted = repository.delete_appointment(appointment_id)
    except STORAGE_ERRORS as exc:
        raise storage_unavailable() from exc

    if not deleted:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail='Failed to delete appointment.',
        )

    return Response(status_code=status.HTTP_204_NO_CONTENT)
