"""Doctor-facing views over the derived doctor-patient relationship."""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from clinic_portal.core.exceptions import NotFoundException
from clinic_portal.models.appointments import appointments
from clinic_portal.models.patients import patients
from clinic_portal.repositories.appointments import AppointmentRepository
from clinic_portal.repositories.base import execute
from clinic_portal.schemas.doctors import MyPatientsResponse, PatientDetailResponse
from clinic_portal.schemas.identities import PatientResponse
from clinic_portal.services.appointment_service import to_response
from clinic_portal.services.authorization import Action, Subject, authorize


class DoctorService:
    """Service for doctor operations."""

    def __init__(self, db: AsyncSession):
        """Initialize service with database session."""
        self.db = db
        self.repository = AppointmentRepository(db)

    async def list_my_patients(self, subject: Subject) -> MyPatientsResponse:
        """Patients linked to the calling doctor by at least one live appointment."""
        rows = await self.repository.patients_for_doctor(subject.id)
        items = [PatientResponse.model_validate(dict(row._mapping)) for row in rows]
        return MyPatientsResponse(total=len(items), items=items)

    async def get_patient_detail(
        self,
        subject: Subject,
        patient_id: UUID,
        page: int = 1,
        page_size: int = 20,
    ) -> PatientDetailResponse:
        """
        Get a patient's profile and their history with the calling doctor.

        Doctors without a relationship to the patient get NotFound, as if the
        patient did not exist.

        Raises:
            NotFoundException: Unknown patient, or no relationship
        """
        stmt = select(patients).where(patients.c.id == patient_id, patients.c.deleted_at.is_(None))
        row = (await execute(self.db, stmt, "patient_get")).first()
        if row is None:
            raise NotFoundException("Patient not found")

        related = await self.repository.has_relationship(subject.id, patient_id)
        authorize(
            subject,
            Action.VIEW_PATIENT,
            {"patient_id": patient_id, "has_relationship": related},
            visibility=Action.VIEW_PATIENT,
        )

        total, history = await self.repository.search(
            [
                appointments.c.patient_id == patient_id,
                appointments.c.doctor_id == subject.id,
                appointments.c.deleted_at.is_(None),
            ],
            page=page,
            page_size=page_size,
        )
        return PatientDetailResponse(
            patient=PatientResponse.model_validate(dict(row._mapping)),
            total=total,
            page=page,
            page_size=page_size,
            appointments=[to_response(item) for item in history],
        )
