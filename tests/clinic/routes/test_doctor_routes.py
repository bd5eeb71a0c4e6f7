from datetime import datetime

import pytest
from fastapi import HTTPException
from pydantic import ValidationError
from sqlalchemy.exc import OperationalError

from clinic.database import build_engine
from clinic.repositories.base import DeletePolicy
from clinic.repositories.sql_repository import SqlClinicRepository
from clinic.routes.doctor_routes import (
    AvailabilityRequest,
    DoctorRequest,
    add_doctor,
    delete_doctor,
    get_doctor,
    list_available_doctors,
    list_doctors,
    list_specialties,
    update_doctor,
    update_doctor_availability,
)


@pytest.fixture
def clinic_repository(tmp_path):
    repository = SqlClinicRepository(build_engine(f"sqlite:///{tmp_path / 'clinic.db'}"), DeletePolicy.BLOCK)
    repository.initialize(seed=True)
    return repository


def test_doctor_request_strips_fields() -> None:
    request = DoctorRequest(full_name='  Dr. Ruth Okafor ', specialty=' Cardiology ', phone='   ')

    assert request.full_name == 'Dr. Ruth Okafor'
    assert request.specialty == 'Cardiology'
    assert request.availability is True
    assert request.phone is None


@pytest.mark.parametrize(
    ('payload', 'error_message'),
    [
        ({'full_name': '   ', 'specialty': 'Cardiology'}, "Please enter doctor's full name."),
        ({'full_name': 'Dr. Ruth Okafor', 'specialty': ''}, 'Please select or enter a specialty.'),
    ],
)
def test_doctor_request_rejects_blank_fields(payload: dict, error_message: str) -> None:
    with pytest.raises(ValidationError) as exception_info:
        DoctorRequest(**payload)

    assert error_message in str(exception_info.value)


def test_list_specialties_returns_catalogue() -> None:
    specialties = list_specialties()

    assert 'Cardiology' in specialties
    assert len(specialties) == 8


def test_list_doctors_and_available_doctors(clinic_repository) -> None:
    all_doctors = list_doctors(repository=clinic_repository)
    available = list_available_doctors(repository=clinic_repository)

    assert len(all_doctors) == 5
    assert all(doctor.availability for doctor in available)
    assert len(available) == 4


def test_get_doctor_returns_not_found_when_missing(clinic_repository) -> None:
    with pytest.raises(HTTPException) as exception_info:
        get_doctor(doctor_id=999, repository=clinic_repository)

    assert exception_info.value.status_code == 404
    assert exception_info.value.detail == 'Doctor not found.'


def test_add_doctor_returns_new_identifier(clinic_repository) -> None:
    response = add_doctor(
        DoctorRequest(full_name='Dr. X', specialty='Oncology', availability=True),
        repository=clinic_repository,
    )

    assert response.id == 6
    assert response.message == 'Doctor added successfully!'
    assert get_doctor(doctor_id=6, repository=clinic_repository).first_name == 'Dr.'


def test_update_doctor_returns_updated_record(clinic_repository) -> None:
    doctor = update_doctor(
        doctor_id=1,
        data=DoctorRequest(full_name='Dr. Sarah Jones', specialty='Cardiology', availability=False),
        repository=clinic_repository,
    )

    assert doctor.last_name == 'Sarah Jones'
    assert doctor.availability is False


def test_update_doctor_returns_not_found_when_missing(clinic_repository) -> None:
    with pytest.raises(HTTPException) as exception_info:
        update_doctor(
            doctor_id=999,
            data=DoctorRequest(full_name='Dr. Nobody', specialty='Cardiology'),
            repository=clinic_repository,
        )

    assert exception_info.value.status_code == 404
    assert exception_info.value.detail == 'Failed to update doctor.'


def test_toggle_availability(clinic_repository) -> None:
    doctor = update_doctor_availability(
        doctor_id=3,
        data=AvailabilityRequest(availability=True),
        repository=clinic_repository,
    )

    assert doctor.availability is True
    assert len(list_available_doctors(repository=clinic_repository)) == 5


def test_delete_doctor_with_appointments_is_blocked(clinic_repository) -> None:
    clinic_repository.create_appointment(1, 1, datetime(2026, 3, 2, 9, 0), None)

    with pytest.raises(HTTPException) as exception_info:
        delete_doctor(doctor_id=1, repository=clinic_repository)

    assert exception_info.value.status_code == 409
    assert exception_info.value.detail == 'Failed to delete doctor. They may have associated appointments.'


def test_delete_doctor_without_appointments(clinic_repository) -> None:
    response = delete_doctor(doctor_id=5, repository=clinic_repository)

    assert response.status_code == 204
    assert clinic_repository.get_doctor_by_id(5) is None


def test_delete_doctor_returns_not_found_when_missing(clinic_repository) -> None:
    with pytest.raises(HTTPException) as exception_info:
        delete_doctor(doctor_id=999, repository=clinic_repository)

    assert exception_info.value.status_code == 404


def test_storage_failure_maps_to_service_unavailable(clinic_repository, monkeypatch: pytest.MonkeyPatch) -> None:
    def broken_query():
        raise OperationalError('SELECT 1', {}, Exception('database is locked'))

    monkeypatch.setattr(clinic_repository, 'get_all_doctors', broken_query)

    with pytest.raises(HTTPException) as exception_info:
        list_doctors(repository=clinic_repository)

    assert exception_info.value.status_code == 503
