from fastapi import APIRouter, Depends, HTTPException, Response, status
from pydantic import BaseModel, field_validator

from clinic.repositories.base import ClinicRepository
from clinic.repositories.factory import get_repository
from clinic.routes.common import STORAGE_ERRORS, optional_text, require_text, storage_unavailable
from clinic.schemas import DoctorRecord
from clinic.seed import SPECIALTIES

router = APIRouter(tags=['doctors'])


class DoctorRequest(BaseModel):
    full_name: str
    specialty: str
    availability: bool = True
    phone: str | None = None

    @field_validator('full_name')
    @classmethod
    def validate_full_name(cls, value: str) -> str:
        return require_text(value, "Please enter doctor's full name.")

    @field_validator('specialty')
    @classmethod
    def validate_specialty(cls, value: str) -> str:
        return require_text(value, 'Please select or enter a specialty.')

    @field_validator('phone')
    @classmethod
    def validate_phone(cls, value: str | None) -> str | None:
        return optional_text(value)


class AvailabilityRequest(BaseModel):
    availability: bool


class CreatedResponse(BaseModel):
    id: int
    message: str


@router.get('', response_model=list[DoctorRecord])
def list_doctors(repository: ClinicRepository = Depends(get_repository)):
    try:
        return repository.get_all_doctors()
    except STORAGE_ERRORS as exc:
        raise storage_unavailable() from exc


@router.get('/available', response_model=list[DoctorRecord])
def list_available_doctors(repository: ClinicRepository = Depends(get_repository)):
    try:
        return repository.get_available_doctors()
    except STORAGE_ERRORS as exc:
        raise storage_unavailable() from exc


@router.get('/specialties', response_model=list[str])
def list_specialties():
    return SPECIALTIES


@router.get('/{doctor_id}', response_model=DoctorRecord)
def get_doctor(doctor_id: int, repository: ClinicRepository = Depends(get_repository)):
    try:
        doctor = repository.get_doctor_by_id(doctor_id)
    except STORAGE_ERRORS as exc:
        raise storage_unavailable() from exc

    if doctor is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail='Doctor not found.',
        )

    return doctor


@router.post('', response_model=CreatedResponse, status_code=status.HTTP_201_CREATED)
def add_doctor(data: DoctorRequest, repository: ClinicRepository = Depends(get_repository)):
    try:
        doctor_id = repository.add_doctor(data.full_name, data.specialty, data.availability, data.phone)
    except STORAGE_ERRORS as exc:
        raise storage_unavailable() from exc

    if doctor_id <= 0:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail='Failed to add doctor.',
        )

    return CreatedResponse(id=doctor_id, message='Doctor added successfully!')


@router.put('/{doctor_id}', response_model=DoctorRecord)
def update_doctor(doctor_id: int, data: DoctorRequest, repository: ClinicRepository = Depends(get_repository)):
    try:
        updated = repository.update_doctor(doctor_id, data.full_name, data.specialty, data.availability, data.phone)
        doctor = repository.get_doctor_by_id(doctor_id) if updated else None
    except STORAGE_ERRORS as exc:
        raise storage_unavailable() from exc

    if doctor is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail='Failed to update doctor.',
        )

    return doctor


@router.patch('/{doctor_id}/availability', response_model=DoctorRecord)
def update_doctor_availability(
    doctor_id: int,
    data: AvailabilityRequest,
    repository: ClinicRepository = Depends(get_repository),
):
    try:
        updated = repository.update_doctor_availability(doctor_id, data.availability)
        doctor = repository.get_doctor_by_id(doctor_id) if updated else None
    except STORAGE_ERRORS as exc:
        raise storage_unavailable() from exc

    if doctor is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail='Failed to update doctor availability.',
        )

    return doctor


@router.delete('/{doctor_id}', status_code=status.HTTP_204_NO_CONTENT)
def delete_doctor(doctor_id: int, repository: ClinicRepository = Depends(get_repository)):
    try:
        if repository.get_doctor_by_id(doctor_id) is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail='Doctor not found.',
            )

        deleted = repository.delete_doctor(doctor_id)
    except STORAGE_ERRORS as exc:
        raise storage_unavailable() from exc

    if not deleted:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail='Failed to delete doctor. They may have associated appointments.',
        )

    return Response(status_code=status.HTTP_204_NO_CONTENT)
