"""Doctor workspace endpoints."""

from datetime import date
from uuid import UUID

from fastapi import APIRouter, Query, status

from clinic_portal.config import settings
from clinic_portal.dependencies import ClockDep, DatabaseSession, DoctorSubject
from clinic_portal.schemas.appointments import (
    AppointmentActionRequest,
    AppointmentEnvelope,
    AppointmentFilters,
    AppointmentListResponse,
    AppointmentStatus,
)
from clinic_portal.schemas.doctors import MyPatientsResponse, PatientDetailResponse
from clinic_portal.schemas.prescriptions import PrescriptionCreate, PrescriptionResponse
from clinic_portal.services.appointment_service import AppointmentService
from clinic_portal.services.doctor_service import DoctorService
from clinic_portal.services.prescription_service import PrescriptionService

router = APIRouter()


@router.post(
    "/appointments/start",
    response_model=AppointmentEnvelope,
    summary="Start consultation",
)
async def start_appointment(
    data: AppointmentActionRequest,
    doctor: DoctorSubject,
    db: DatabaseSession,
    clock: ClockDep,
) -> AppointmentEnvelope:
    """
    Move one of the doctor's appointments to in-progress.

    Starting an appointment that is already in progress is rejected.
    """
    service = AppointmentService(db, clock)
    appointment = await service.start_appointment(doctor, data.appointment_id)
    return AppointmentEnvelope(message="Consultation started", appointment=appointment)


@router.post(
    "/appointments/complete",
    response_model=AppointmentEnvelope,
    summary="Complete consultation",
)
async def complete_appointment(
    data: AppointmentActionRequest,
    doctor: DoctorSubject,
    db: DatabaseSession,
    clock: ClockDep,
) -> AppointmentEnvelope:
    """Move an in-progress appointment to completed."""
    service = AppointmentService(db, clock)
    appointment = await service.complete_appointment(doctor, data.appointment_id)
    return AppointmentEnvelope(message="Consultation completed", appointment=appointment)


@router.get(
    "/my-appointments",
    response_model=AppointmentListResponse,
    summary="List the doctor's appointments",
)
async def my_appointments(
    doctor: DoctorSubject,
    db: DatabaseSession,
    clock: ClockDep,
    appointment_date: date | None = Query(None, alias="date"),
    status_filter: AppointmentStatus | None = Query(None, alias="status"),
    upcoming: bool = Query(False),
    page: int = Query(1, ge=1),
    page_size: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
) -> AppointmentListResponse:
    """The calling doctor's schedule."""
    filters = AppointmentFilters(
        appointment_date=appointment_date,
        status=status_filter,
        upcoming=upcoming,
        page=page,
        page_size=page_size,
    )
    service = AppointmentService(db, clock)
    return await service.list_appointments(doctor, filters)


@router.get(
    "/my-patients",
    response_model=MyPatientsResponse,
    summary="List the doctor's patients",
)
async def my_patients(doctor: DoctorSubject, db: DatabaseSession) -> MyPatientsResponse:
    """Patients the doctor has at least one appointment with."""
    return await DoctorService(db).list_my_patients(doctor)


@router.get(
    "/patients/{patient_id}",
    response_model=PatientDetailResponse,
    summary="Get patient detail",
)
async def patient_detail(
    patient_id: UUID,
    doctor: DoctorSubject,
    db: DatabaseSession,
    page: int = Query(1, ge=1),
    page_size: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
) -> PatientDetailResponse:
    """Patient profile and a page of shared history; only for patients the doctor has seen."""
    return await DoctorService(db).get_patient_detail(doctor, patient_id, page, page_size)


@router.post(
    "/prescriptions",
    response_model=PrescriptionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Issue a prescription",
)
async def create_prescription(
    data: PrescriptionCreate,
    doctor: DoctorSubject,
    db: DatabaseSession,
    clock: ClockDep,
) -> PrescriptionResponse:
    """Prescribe for a patient the doctor has an appointment with."""
    service = PrescriptionService(db, clock)
    return await service.create_prescription(doctor, data)
