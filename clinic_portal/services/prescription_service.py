"""Prescription service for business logic."""

from typing import Any
from uuid import UUID, uuid4

import structlog
from sqlalchemy import func, insert, select
from sqlalchemy.ext.asyncio import AsyncSession

from clinic_portal.core.clock import Clock
from clinic_portal.core.exceptions import NotFoundException
from clinic_portal.models.patients import patients
from clinic_portal.models.prescriptions import prescription_drugs, prescriptions
from clinic_portal.repositories.appointments import AppointmentRepository
from clinic_portal.repositories.base import commit, execute
from clinic_portal.schemas.prescriptions import (
    PrescriptionCreate,
    PrescriptionListResponse,
    PrescriptionResponse,
)
from clinic_portal.services.authorization import (
    Action,
    Subject,
    authorize,
    ownership_filter,
    require,
)
from clinic_portal.services.soft_delete import SoftDeleteLifecycle

logger = structlog.get_logger()

prescription_lifecycle = SoftDeleteLifecycle(prescriptions, "prescription")
drug_lifecycle = SoftDeleteLifecycle(prescription_drugs, "prescription drug")


class PrescriptionService:
    """Service for prescriptions and their line items."""

    def __init__(self, db: AsyncSession, clock: Clock):
        """Initialize service with database session and time source."""
        self.db = db
        self.clock = clock

    async def _drugs_for(self, prescription_ids: list[UUID]) -> dict[UUID, list[dict[str, Any]]]:
        grouped: dict[UUID, list[dict[str, Any]]] = {pid: [] for pid in prescription_ids}
        if not prescription_ids:
            return grouped

        stmt = (
            select(prescription_drugs)
            .where(
                prescription_drugs.c.prescription_id.in_(prescription_ids),
                drug_lifecycle.live(),
            )
            .order_by(prescription_drugs.c.created_at, prescription_drugs.c.drug_name)
        )
        rows = (await execute(self.db, stmt, "prescription_drug_list")).mappings().all()
        for row in rows:
            grouped[row["prescription_id"]].append(dict(row))
        return grouped

    async def _load(self, prescription_id: UUID, include_deleted: bool = False) -> dict[str, Any]:
        stmt = select(prescriptions).where(
            prescriptions.c.id == prescription_id,
            *prescription_lifecycle.visibility(include_deleted),
        )
        row = (await execute(self.db, stmt, "prescription_get")).mappings().first()
        if row is None:
            raise NotFoundException("Prescription not found")
        return dict(row)

    async def _response(self, record: dict[str, Any]) -> PrescriptionResponse:
        drugs = await self._drugs_for([record["id"]])
        return PrescriptionResponse.model_validate({**record, "drugs": drugs[record["id"]]})

    async def create_prescription(self, subject: Subject, data: PrescriptionCreate) -> PrescriptionResponse:
        """
        Issue a prescription for a patient the doctor has seen.

        The prescription and its line items are written in one transaction.

        Raises:
            NotFoundException: Unknown or deleted patient
            ForbiddenException: Caller is not a doctor, or has never seen the patient
        """
        patient = await execute(
            self.db,
            select(patients.c.id).where(patients.c.id == data.patient_id, patients.c.deleted_at.is_(None)),
            "patient_lookup",
        )
        if patient.first() is None:
            raise NotFoundException("Patient not found")

        related = await AppointmentRepository(self.db).has_relationship(subject.id, data.patient_id)
        resource = {"patient_id": data.patient_id, "doctor_id": subject.id, "has_relationship": related}
        require(subject, Action.PRESCRIBE, resource)

        now = self.clock.now()
        prescription_id = uuid4()
        await execute(
            self.db,
            insert(prescriptions).values(
                id=prescription_id,
                patient_id=data.patient_id,
                doctor_id=subject.id,
                diagnosis=data.diagnosis,
                date_issued=now.date(),
                created_at=now,
                updated_at=now,
            ),
            "prescription_insert",
        )
        for drug in data.drugs:
            await execute(
                self.db,
                insert(prescription_drugs).values(
                    id=uuid4(),
                    prescription_id=prescription_id,
                    drug_name=drug.drug_name,
                    dosage=drug.dosage,
                    duration=drug.duration,
                    created_at=now,
                    updated_at=now,
                ),
                "prescription_drug_insert",
            )
        await commit(self.db, "prescription_insert")

        logger.info(
            "prescription_created",
            prescription_id=str(prescription_id),
            doctor_id=str(subject.id),
            patient_id=str(data.patient_id),
            drug_count=len(data.drugs),
        )
        return await self._response(await self._load(prescription_id))

    async def list_prescriptions(
        self,
        subject: Subject,
        include_deleted: bool = False,
        page: int = 1,
        page_size: int = 20,
    ) -> PrescriptionListResponse:
        """List prescriptions visible to the caller."""
        if include_deleted:
            require(subject, Action.INCLUDE_DELETED)

        conditions = [
            *ownership_filter(subject, prescriptions),
            *prescription_lifecycle.visibility(include_deleted),
        ]
        count_stmt = select(func.count()).select_from(prescriptions).where(*conditions)
        total = (await execute(self.db, count_stmt, "prescription_count")).scalar() or 0

        stmt = (
            select(prescriptions)
            .where(*conditions)
            .order_by(prescriptions.c.date_issued.desc(), prescriptions.c.created_at.desc())
            .limit(page_size)
            .offset((page - 1) * page_size)
        )
        records = [dict(row) for row in (await execute(self.db, stmt, "prescription_list")).mappings().all()]
        drugs = await self._drugs_for([record["id"] for record in records])

        return PrescriptionListResponse(
            total=total,
            page=page,
            page_size=page_size,
            items=[PrescriptionResponse.model_validate({**r, "drugs": drugs[r["id"]]}) for r in records],
        )

    async def get_prescription(self, subject: Subject, prescription_id: UUID) -> PrescriptionResponse:
        """
        Get one prescription.

        Raises:
            NotFoundException: Absent, deleted, or not the caller's
        """
        record = await self._load(prescription_id)
        authorize(subject, Action.READ, record)
        return await self._response(record)

    async def delete_prescription(self, subject: Subject, prescription_id: UUID) -> None:
        """Soft delete a prescription (admin only)."""
        require(subject, Action.DELETE)
        await prescription_lifecycle.soft_delete(self.db, prescription_id, self.clock.now())

    async def restore_prescription(self, subject: Subject, prescription_id: UUID) -> PrescriptionResponse:
        """Restore a soft-deleted prescription (admin only)."""
        require(subject, Action.RESTORE)
        await prescription_lifecycle.restore(self.db, prescription_id)
        return await self._response(await self._load(prescription_id))

    async def delete_drug(self, subject: Subject, drug_id: UUID) -> None:
        """Soft delete one line item (admin only)."""
        require(subject, Action.DELETE)
        await drug_lifecycle.soft_delete(self.db, drug_id, self.clock.now())

    async def restore_drug(self, subject: Subject, drug_id: UUID) -> None:
        """Restore one line item (admin only)."""
        require(subject, Action.RESTORE)
        await drug_lifecycle.restore(self.db, drug_id)
