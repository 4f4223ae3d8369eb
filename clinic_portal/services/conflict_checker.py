"""Slot conflict detection for bookings and edits."""

from datetime import date, time
from enum import Enum
from uuid import UUID

import structlog

from clinic_portal.core.exceptions import SlotConflictException
from clinic_portal.repositories.appointments import AppointmentRepository

logger = structlog.get_logger()


class SlotSide(str, Enum):
    """Party whose slot is already taken."""

    DOCTOR = "doctor"
    PATIENT = "patient"


class ConflictChecker:
    """
    Decide whether a (doctor, patient, date, time) candidate is bookable.

    Slots are compared by exact date and time equality. Cancelled and
    soft-deleted appointments never hold a slot. Past dates are not rejected
    here.
    """

    def __init__(self, repository: AppointmentRepository):
        """Initialize checker with the appointment repository."""
        self.repository = repository

    async def check_conflict(
        self,
        doctor_id: UUID,
        patient_id: UUID,
        appointment_date: date,
        appointment_time: time,
        exclude_appointment_id: UUID | None = None,
    ) -> SlotSide | None:
        """
        Find which side, if any, already holds the slot.

        Args:
            doctor_id: Doctor of the candidate booking
            patient_id: Patient of the candidate booking
            appointment_date: Candidate date
            appointment_time: Candidate time
            exclude_appointment_id: Appointment being edited, never a conflict with itself

        Returns:
            The conflicting side, or None when the slot is free
        """
        doctor_holder = await self.repository.find_active_by_slot(
            appointment_date,
            appointment_time,
            doctor_id=doctor_id,
            exclude_id=exclude_appointment_id,
        )
        if doctor_holder is not None:
            return SlotSide.DOCTOR

        patient_holder = await self.repository.find_active_by_slot(
            appointment_date,
            appointment_time,
            patient_id=patient_id,
            exclude_id=exclude_appointment_id,
        )
        if patient_holder is not None:
            return SlotSide.PATIENT

        return None

    async def ensure_free(
        self,
        doctor_id: UUID,
        patient_id: UUID,
        appointment_date: date,
        appointment_time: time,
        exclude_appointment_id: UUID | None = None,
    ) -> None:
        """
        Raise when the slot is taken.

        Raises:
            SlotConflictException: Doctor or patient already booked at that slot
        """
        side = await self.check_conflict(
            doctor_id,
            patient_id,
            appointment_date,
            appointment_time,
            exclude_appointment_id,
        )
        if side is not None:
            logger.info(
                "slot_conflict",
                side=side.value,
                doctor_id=str(doctor_id),
                patient_id=str(patient_id),
                appointment_date=appointment_date.isoformat(),
                appointment_time=appointment_time.isoformat(),
            )
            raise SlotConflictException(side.value)
