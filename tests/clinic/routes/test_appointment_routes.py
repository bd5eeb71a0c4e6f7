from datetime import datetime, timezone

import pytest
from fastapi import HTTPException
from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError

from clinic.database import build_engine
from clinic.repositories.base import DeletePolicy
from clinic.repositories.file_repository import FileClinicRepository
from clinic.repositories.sql_repository import SqlClinicRepository
from clinic.routes.appointment_routes import (
    AppointmentRequest,
    book_appointment,
    delete_appointment,
    get_appointment,
    list_appointments,
    list_appointments_by_doctor,
    list_appointments_by_patient,
    update_appointment,
)


@pytest.fixture
def clinic_repository(tmp_path):
    repository = SqlClinicRepository(build_engine(f"sqlite:///{tmp_path / 'clinic.db'}"), DeletePolicy.CASCADE)
    repository.initialize(seed=True)
    return repository


@pytest.fixture
def file_repository(tmp_path):
    repository = FileClinicRepository(tmp_path / 'data', DeletePolicy.CASCADE)
    repository.initialize(seed=True)
    return repository


def book(repository, doctor_id: int, patient_id: int, when: datetime, notes: str | None = None) -> int:
    request = AppointmentRequest(doctor_id=doctor_id, patient_id=patient_id, appointment_date=when, notes=notes)
    return book_appointment(request, repository=repository).id


def test_appointment_request_normalizes_blank_notes() -> None:
    request = AppointmentRequest(doctor_id=1, patient_id=1, appointment_date=datetime(2026, 3, 2, 9, 0), notes='   ')

    assert request.notes is None


@pytest.mark.parametrize(
    ('doctor_id', 'patient_id', 'error_message'),
    [
        (0, 1, 'Please select a doctor.'),
        (1, -1, 'Please select a patient.'),
    ],
)
def test_appointment_request_requires_selection(doctor_id: int, patient_id: int, error_message: str) -> None:
    with pytest.raises(ValidationError) as exception_info:
        AppointmentRequest(doctor_id=doctor_id, patient_id=patient_id, appointment_date=datetime(2026, 3, 2, 9, 0))

    assert error_message in str(exception_info.value)


def test_appointment_request_rejects_long_notes() -> None:
    with pytest.raises(ValidationError):
        AppointmentRequest(doctor_id=1, patient_id=1, appointment_date=datetime(2026, 3, 2, 9, 0), notes='x' * 601)


def test_book_and_get_appointment(clinic_repository) -> None:
    appointment_id = book(clinic_repository, 2, 3, datetime(2026, 3, 2, 9, 0), 'First visit')

    appointment = get_appointment(appointment_id=appointment_id, repository=clinic_repository)

    assert appointment.doctor_name == 'Dr. Michael Chen'
    assert appointment.patient_name == 'David Lee'
    assert appointment.notes == 'First visit'


def test_list_appointments_with_search(clinic_repository) -> None:
    book(clinic_repository, 1, 1, datetime(2026, 3, 2, 9, 0), 'Annual physical')
    book(clinic_repository, 2, 2, datetime(2026, 3, 3, 9, 0))

    assert len(list_appointments(search=None, repository=clinic_repository)) == 2
    matches = list_appointments(search='physical', repository=clinic_repository)
    assert [appointment.patient_name for appointment in matches] == ['John Smith']


def test_list_appointments_by_doctor_and_patient(clinic_repository) -> None:
    book(clinic_repository, 1, 1, datetime(2026, 3, 2, 9, 0))
    book(clinic_repository, 1, 2, datetime(2026, 3, 4, 9, 0))

    by_doctor = list_appointments_by_doctor(doctor_id=1, repository=clinic_repository)
    by_patient = list_appointments_by_patient(patient_id=2, repository=clinic_repository)

    assert [appointment.patient_id for appointment in by_doctor] == [2, 1]
    assert len(by_patient) == 1


def test_update_appointment_reassigns_doctor(clinic_repository) -> None:
    appointment_id = book(clinic_repository, 1, 1, datetime(2026, 3, 2, 9, 0))

    appointment = update_appointment(
        appointment_id=appointment_id,
        data=AppointmentRequest(doctor_id=4, patient_id=1, appointment_date=datetime(2026, 3, 9, 11, 0)),
        repository=clinic_repository,
    )

    assert appointment.doctor_name == 'Dr. James Wilson'
    assert appointment.appointment_date == datetime(2026, 3, 9, 11, 0)


def test_update_appointment_returns_not_found_when_missing(clinic_repository) -> None:
    with pytest.raises(HTTPException) as exception_info:
        update_appointment(
            appointment_id=999,
            data=AppointmentRequest(doctor_id=1, patient_id=1, appointment_date=datetime(2026, 3, 2, 9, 0)),
            repository=clinic_repository,
        )

    assert exception_info.value.status_code == 404
    assert exception_info.value.detail == 'Failed to update appointment.'


def test_delete_appointment(clinic_repository) -> None:
    appointment_id = book(clinic_repository, 1, 1, datetime(2026, 3, 2, 9, 0))

    response = delete_appointment(appointment_id=appointment_id, repository=clinic_repository)
    assert response.status_code == 204

    with pytest.raises(HTTPException) as exception_info:
        delete_appointment(appointment_id=appointment_id, repository=clinic_repository)

    assert exception_info.value.status_code == 404


def test_appointment_request_converts_aware_dates_to_naive_local() -> None:
    aware = datetime(2026, 11, 2, 10, 0, tzinfo=timezone.utc)

    request = AppointmentRequest(doctor_id=1, patient_id=1, appointment_date='2026-11-02T10:00:00Z')

    assert request.appointment_date.tzinfo is None
    assert request.appointment_date == aware.astimezone().replace(tzinfo=None)


@pytest.mark.parametrize(
    ('doctor_id', 'patient_id', 'error_message'),
    [
        (999, 1, 'Doctor not found.'),
        (1, 999, 'Patient not found.'),
    ],
)
def test_booking_with_unknown_participant_returns_not_found(
    clinic_repository,
    file_repository,
    doctor_id: int,
    patient_id: int,
    error_message: str,
) -> None:
    for repository in (clinic_repository, file_repository):
        with pytest.raises(HTTPException) as exception_info:
            book(repository, doctor_id, patient_id, datetime(2026, 3, 2, 9, 0))

        assert exception_info.value.status_code == 404
        assert exception_info.value.detail == error_message
        assert repository.get_all_appointments() == []

    assert file_repository.appointments.records == []


@pytest.mark.parametrize(
    ('doctor_id', 'patient_id', 'error_message'),
    [
        (999, 1, 'Doctor not found.'),
        (1, 999, 'Patient not found.'),
    ],
)
def test_update_with_unknown_participant_leaves_appointment_unchanged(
    file_repository,
    doctor_id: int,
    patient_id: int,
    error_message: str,
) -> None:
    appointment_id = book(file_repository, 2, 3, datetime(2026, 3, 2, 9, 0), 'Keep me')

    with pytest.raises(HTTPException) as exception_info:
        update_appointment(
            appointment_id=appointment_id,
            data=AppointmentRequest(doctor_id=doctor_id, patient_id=patient_id, appointment_date=datetime(2026, 4, 1, 9, 0)),
            repository=file_repository,
        )

    assert exception_info.value.status_code == 404
    assert exception_info.value.detail == error_message
    stored = file_repository.get_appointment_by_id(appointment_id)
    assert stored.doctor_id == 2
    assert stored.patient_id == 3
    assert stored.appointment_date == datetime(2026, 3, 2, 9, 0)


def test_booking_race_with_deleted_doctor_maps_to_conflict(clinic_repository, monkeypatch) -> None:
    def fail_create(*args, **kwargs):
        raise IntegrityError('INSERT INTO appointments', {}, Exception('FOREIGN KEY constraint failed'))

    monkeypatch.setattr(clinic_repository, 'create_appointment', fail_create)

    with pytest.raises(HTTPException) as exception_info:
        book(clinic_repository, 1, 1, datetime(2026, 3, 2, 9, 0))

    assert exception_info.value.status_code == 409
