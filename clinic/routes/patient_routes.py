from fastapi import APIRouter, Depends, HTTPException, Response, status
from pydantic import BaseModel, field_validator

from clinic.repositories.base import ClinicRepository
from clinic.repositories.factory import get_repository
from clinic.routes.common import STORAGE_ERRORS, require_text, storage_unavailable
from clinic.routes.doctor_routes import CreatedResponse
from clinic.schemas import PatientRecord

router = APIRouter(tags=['patients'])


class PatientRequest(BaseModel):
    full_name: str
    email: str

    @field_validator('full_name')
    @classmethod
    def validate_full_name(cls, value: str) -> str:
        return require_text(value, "Please enter patient's full name.")

    @field_validator('email')
    @classmethod
    def validate_email(cls, value: str) -> str:
        return require_text(value, "Please enter patient's email.")


@router.get('', response_model=list[PatientRecord])
def list_patients(repository: ClinicRepository = Depends(get_repository)):
    try:
        return repository.get_all_patients()
    except STORAGE_ERRORS as exc:
        raise storage_unavailable() from exc


@router.get('/{patient_id}', response_model=PatientRecord)
def get_patient(patient_id: int, repository: ClinicRepository = Depends(get_repository)):
    try:
        patient = repository.get_patient_by_id(patient_id)
    except STORAGE_ERRORS as exc:
        raise storage_unavailable() from exc

    if patient is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail='Patient not found.',
        )

    return patient


@router.post('', response_model=CreatedResponse, status_code=status.HTTP_201_CREATED)
def add_patient(data: PatientRequest, repository: ClinicRepository = Depends(get_repository)):
    try:
        patient_id = repository.add_patient(data.full_name, data.email)
    except STORAGE_ERRORS as exc:
        raise storage_unavailable() from exc

    if patient_id <= 0:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail='Failed to add patient.',
        )

    return CreatedResponse(id=patient_id, message='Patient added successfully!')


@router.put('/{patient_id}', response_model=PatientRecord)
def update_patient(patient_id: int, data: PatientRequest, repository: ClinicRepository = Depends(get_repository)):
    try:
        updated = repository.update_patient(patient_id, data.full_name, data.email)
        patient = repository.get_patient_by_id(patient_id) if updated else None
    except STORAGE_ERRORS as exc:
        raise storage_unavailable() from exc

    if patient is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail='Failed to update patient.',
        )

    return patient


@router.delete('/{patient_id}', status_code=status.HTTP_204_NO_CONTENT)
def delete_patient(patient_id: int, repository: ClinicRepository = Depends(get_repository)):
    try:
        if repository.get_patient_by_id(patient_id) is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail='Patient not found.',
            )

        deleted = repository.delete_patient(patient_id)
    except STORAGE_ERRORS as exc:
        raise storage_unavailable() from exc

    if not deleted:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail='Failed to delete patient. They may have associated appointments.',
        )

    return Response(status_code=status.HTTP_204_NO_CONTENT)
