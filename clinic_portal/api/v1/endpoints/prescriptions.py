"""Prescription endpoints."""

from uuid import UUID

from fastapi import APIRouter, Query

from clinic_portal.config import settings
from clinic_portal.dependencies import ClockDep, CurrentSubject, DatabaseSession
from clinic_portal.schemas.common import MessageResponse
from clinic_portal.schemas.prescriptions import PrescriptionListResponse, PrescriptionResponse
from clinic_portal.services.prescription_service import PrescriptionService

router = APIRouter()


@router.get("", response_model=PrescriptionListResponse, summary="List prescriptions")
async def list_prescriptions(
    subject: CurrentSubject,
    db: DatabaseSession,
    clock: ClockDep,
    include_deleted: bool = Query(False),
    page: int = Query(1, ge=1),
    page_size: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
) -> PrescriptionListResponse:
    """Patients see their own prescriptions, doctors the ones they issued."""
    service = PrescriptionService(db, clock)
    return await service.list_prescriptions(subject, include_deleted, page, page_size)


@router.delete("/drugs/{drug_id}", response_model=MessageResponse, summary="Delete prescription drug")
async def delete_drug(
    drug_id: UUID,
    subject: CurrentSubject,
    db: DatabaseSession,
    clock: ClockDep,
) -> MessageResponse:
    """Soft delete one line item (admin only)."""
    await PrescriptionService(db, clock).delete_drug(subject, drug_id)
    return MessageResponse(message="Prescription drug deleted successfully")


@router.put("/drugs/restore/{drug_id}", response_model=MessageResponse, summary="Restore prescription drug")
async def restore_drug(
    drug_id: UUID,
    subject: CurrentSubject,
    db: DatabaseSession,
    clock: ClockDep,
) -> MessageResponse:
    """Restore one line item (admin only)."""
    await PrescriptionService(db, clock).restore_drug(subject, drug_id)
    return MessageResponse(message="Prescription drug restored successfully")


@router.put("/restore/{prescription_id}", response_model=PrescriptionResponse, summary="Restore prescription")
async def restore_prescription(
    prescription_id: UUID,
    subject: CurrentSubject,
    db: DatabaseSession,
    clock: ClockDep,
) -> PrescriptionResponse:
    """Restore a soft-deleted prescription (admin only)."""
    return await PrescriptionService(db, clock).restore_prescription(subject, prescription_id)


@router.get("/{prescription_id}", response_model=PrescriptionResponse, summary="Get prescription")
async def get_prescription(
    prescription_id: UUID,
    subject: CurrentSubject,
    db: DatabaseSession,
    clock: ClockDep,
) -> PrescriptionResponse:
    """Get one prescription with its live line items."""
    return await PrescriptionService(db, clock).get_prescription(subject, prescription_id)


@router.delete("/{prescription_id}", response_model=MessageResponse, summary="Delete prescription")
async def delete_prescription(
    prescription_id: UUID,
    subject: CurrentSubject,
    db: DatabaseSession,
    clock: ClockDep,
) -> MessageResponse:
    """Soft delete a prescription (admin only)."""
    await PrescriptionService(db, clock).delete_prescription(subject, prescription_id)
    return MessageResponse(message="Prescription deleted successfully")
