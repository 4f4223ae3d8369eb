"""Appointment endpoints."""

from datetime import date
from uuid import UUID

from fastapi import APIRouter, Query, status

from clinic_portal.config import settings
from clinic_portal.dependencies import ClockDep, CurrentSubject, DatabaseSession
from clinic_portal.schemas.appointments import (
    AppointmentCreate,
    AppointmentEnvelope,
    AppointmentFilters,
    AppointmentListResponse,
    AppointmentResponse,
    AppointmentStatus,
    AppointmentUpdate,
)
from clinic_portal.schemas.common import MessageResponse
from clinic_portal.services.appointment_service import AppointmentService

router = APIRouter()


@router.post(
    "",
    response_model=AppointmentEnvelope,
    status_code=status.HTTP_201_CREATED,
    summary="Book an appointment",
)
async def create_appointment(
    data: AppointmentCreate,
    subject: CurrentSubject,
    db: DatabaseSession,
    clock: ClockDep,
) -> AppointmentEnvelope:
    """
    Book a doctor slot.

    Patients book for themselves; admins may book for any patient.
    """
    service = AppointmentService(db, clock)
    appointment = await service.create_appointment(subject, data)
    return AppointmentEnvelope(message="Appointment created successfully", appointment=appointment)


@router.get(
    "",
    response_model=AppointmentListResponse,
    summary="List appointments",
)
async def list_appointments(
    subject: CurrentSubject,
    db: DatabaseSession,
    clock: ClockDep,
    appointment_date: date | None = Query(None, alias="date"),
    status_filter: AppointmentStatus | None = Query(None, alias="status"),
    upcoming: bool = Query(False),
    doctor_id: UUID | None = Query(None),
    patient_id: UUID | None = Query(None),
    include_deleted: bool = Query(False),
    page: int = Query(1, ge=1),
    page_size: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
) -> AppointmentListResponse:
    """
    List the appointments the caller may see.

    Patients see their own, doctors their own schedule, admins everything.
    """
    filters = AppointmentFilters(
        appointment_date=appointment_date,
        status=status_filter,
        upcoming=upcoming,
        doctor_id=doctor_id,
        patient_id=patient_id,
        include_deleted=include_deleted,
        page=page,
        page_size=page_size,
    )
    service = AppointmentService(db, clock)
    return await service.list_appointments(subject, filters)


@router.get(
    "/{appointment_id}",
    response_model=AppointmentResponse,
    summary="Get appointment",
)
async def get_appointment(
    appointment_id: UUID,
    subject: CurrentSubject,
    db: DatabaseSession,
    clock: ClockDep,
) -> AppointmentResponse:
    """Get one appointment; appointments of other patients or doctors are not found."""
    service = AppointmentService(db, clock)
    return await service.get_appointment(subject, appointment_id)


@router.put(
    "/restore/{appointment_id}",
    response_model=AppointmentEnvelope,
    summary="Restore a deleted appointment",
)
async def restore_appointment(
    appointment_id: UUID,
    subject: CurrentSubject,
    db: DatabaseSession,
    clock: ClockDep,
) -> AppointmentEnvelope:
    """Clear the deletion marker; the status is left as it was."""
    service = AppointmentService(db, clock)
    appointment = await service.restore_appointment(subject, appointment_id)
    return AppointmentEnvelope(message="Appointment restored successfully", appointment=appointment)


@router.put(
    "/{appointment_id}",
    response_model=AppointmentEnvelope,
    summary="Replace appointment",
)
async def update_appointment(
    appointment_id: UUID,
    data: AppointmentUpdate,
    subject: CurrentSubject,
    db: DatabaseSession,
    clock: ClockDep,
) -> AppointmentEnvelope:
    """
    Replace patient, doctor, date, time and status.

    Moving the slot re-runs the conflict check against every other appointment.
    """
    service = AppointmentService(db, clock)
    appointment = await service.update_appointment(subject, appointment_id, data)
    return AppointmentEnvelope(message="Appointment updated successfully", appointment=appointment)


@router.post(
    "/{appointment_id}/cancel",
    response_model=AppointmentEnvelope,
    summary="Cancel appointment",
)
async def cancel_appointment(
    appointment_id: UUID,
    subject: CurrentSubject,
    db: DatabaseSession,
    clock: ClockDep,
) -> AppointmentEnvelope:
    """Cancel an appointment and free its slot."""
    service = AppointmentService(db, clock)
    appointment = await service.cancel_appointment(subject, appointment_id)
    return AppointmentEnvelope(message="Appointment cancelled successfully", appointment=appointment)


@router.post(
    "/{appointment_id}/confirm",
    response_model=AppointmentEnvelope,
    summary="Confirm appointment",
)
async def confirm_appointment(
    appointment_id: UUID,
    subject: CurrentSubject,
    db: DatabaseSession,
    clock: ClockDep,
) -> AppointmentEnvelope:
    """Acknowledge a scheduled appointment (owning doctor or admin)."""
    service = AppointmentService(db, clock)
    appointment = await service.confirm_appointment(subject, appointment_id)
    return AppointmentEnvelope(message="Appointment confirmed successfully", appointment=appointment)


@router.delete(
    "/{appointment_id}",
    response_model=MessageResponse,
    summary="Delete appointment",
)
async def delete_appointment(
    appointment_id: UUID,
    subject: CurrentSubject,
    db: DatabaseSession,
    clock: ClockDep,
) -> MessageResponse:
    """Soft delete an appointment. The record is kept for audit and can be restored."""
    service = AppointmentService(db, clock)
    await service.delete_appointment(subject, appointment_id)
    return MessageResponse(message="Appointment deleted successfully")
