"""Appointment service for business logic."""

from dataclasses import dataclass
from datetime import date, time
from typing import Any
from uuid import UUID, uuid4

import structlog
from sqlalchemy import Row, Table, select
from sqlalchemy.ext.asyncio import AsyncSession

from clinic_portal.core.clock import Clock
from clinic_portal.core.exceptions import (
    ForbiddenException,
    InvalidStateTransitionException,
    NotFoundException,
    ValidationException,
)
from clinic_portal.core.security import Role
from clinic_portal.models.appointments import appointments
from clinic_portal.models.doctors import doctors
from clinic_portal.models.patients import patients
from clinic_portal.repositories.appointments import AppointmentRepository
from clinic_portal.repositories.base import execute
from clinic_portal.schemas.appointments import (
    INITIAL_STATUSES,
    AppointmentCreate,
    AppointmentFilters,
    AppointmentListResponse,
    AppointmentResponse,
    AppointmentStatus,
    AppointmentUpdate,
)
from clinic_portal.services.appointment_state import (
    TERMINAL_STATUSES,
    TRANSITIONS,
    action_for_change,
    ensure_deletable,
    ensure_restorable,
    next_status,
)
from clinic_portal.services.authorization import (
    Action,
    Subject,
    authorize,
    can_access,
    ownership_filter,
    require,
)
from clinic_portal.services.conflict_checker import ConflictChecker

logger = structlog.get_logger()


@dataclass(frozen=True)
class BookSlot:
    """A request to occupy one doctor slot and one patient slot."""

    patient_id: UUID
    doctor_id: UUID
    appointment_date: date
    appointment_time: time
    status: AppointmentStatus = AppointmentStatus.SCHEDULED
    reason: str | None = None


def to_response(row: Row[Any]) -> AppointmentResponse:
    """Build the API representation of a joined appointment row."""
    return AppointmentResponse.model_validate(dict(row._mapping))


class AppointmentService:
    """Service for managing appointments."""

    def __init__(self, db: AsyncSession, clock: Clock):
        """Initialize service with database session and time source."""
        self.db = db
        self.clock = clock
        self.repository = AppointmentRepository(db)
        self.checker = ConflictChecker(self.repository)

    async def _ensure_live_identity(self, table: Table, identity_id: UUID, label: str) -> None:
        stmt = select(table.c.id).where(table.c.id == identity_id, table.c.deleted_at.is_(None))
        result = await execute(self.db, stmt, f"{label}_lookup")
        if result.first() is None:
            raise NotFoundException(f"{label.capitalize()} not found")

    async def _load(self, appointment_id: UUID, include_deleted: bool = False) -> Row[Any]:
        row = await self.repository.get(appointment_id, include_deleted=include_deleted)
        if row is None:
            raise NotFoundException("Appointment not found")
        return row

    async def book(self, command: BookSlot) -> AppointmentResponse:
        """
        Execute a booking.

        The conflict check gives callers a precise answer in the common case;
        the slot indexes decide the outcome when two bookings race.

        Raises:
            SlotConflictException: Doctor or patient slot already taken
        """
        await self.checker.ensure_free(
            command.doctor_id,
            command.patient_id,
            command.appointment_date,
            command.appointment_time,
        )

        now = self.clock.now()
        appointment_id = await self.repository.insert_if_free(
            {
                "id": uuid4(),
                "patient_id": command.patient_id,
                "doctor_id": command.doctor_id,
                "appointment_date": command.appointment_date,
                "appointment_time": command.appointment_time,
                "status": command.status.value,
                "reason": command.reason,
                "created_at": now,
                "updated_at": now,
            }
        )

        logger.info(
            "appointment_booked",
            appointment_id=str(appointment_id),
            doctor_id=str(command.doctor_id),
            patient_id=str(command.patient_id),
            appointment_date=command.appointment_date.isoformat(),
            appointment_time=command.appointment_time.isoformat(),
        )
        return to_response(await self._load(appointment_id))

    async def create_appointment(
        self,
        subject: Subject,
        data: AppointmentCreate,
    ) -> AppointmentResponse:
        """
        Create a new appointment.

        Args:
            subject: Authenticated caller
            data: Appointment creation data

        Returns:
            Created appointment

        Raises:
            ValidationException: Missing patient or non-initial status
            ForbiddenException: Caller may not book for that patient
            NotFoundException: Unknown or deleted doctor/patient
            SlotConflictException: Slot already taken
        """
        patient_id = data.patient_id
        if patient_id is None and subject.role == Role.PATIENT:
            patient_id = subject.id
        if patient_id is None:
            raise ValidationException("patient_id is required")

        require(subject, Action.CREATE, {"patient_id": patient_id, "doctor_id": data.doctor_id})

        status = data.status or AppointmentStatus.SCHEDULED
        if status not in INITIAL_STATUSES:
            raise ValidationException(f"A new appointment cannot start as {status.value}")

        await self._ensure_live_identity(patients, patient_id, "patient")
        await self._ensure_live_identity(doctors, data.doctor_id, "doctor")

        return await self.book(
            BookSlot(
                patient_id=patient_id,
                doctor_id=data.doctor_id,
                appointment_date=data.appointment_date,
                appointment_time=data.appointment_time,
                status=status,
                reason=data.reason,
            )
        )

    async def get_appointment(self, subject: Subject, appointment_id: UUID) -> AppointmentResponse:
        """
        Get appointment by ID.

        Raises:
            NotFoundException: Appointment absent, deleted, or not the caller's
        """
        row = await self._load(appointment_id)
        authorize(subject, Action.READ, row._mapping)
        return to_response(row)

    async def list_appointments(
        self,
        subject: Subject,
        filters: AppointmentFilters,
    ) -> AppointmentListResponse:
        """
        List appointments visible to the caller with filtering and pagination.

        Raises:
            ForbiddenException: Non-admin asked for deleted records
        """
        if filters.include_deleted:
            require(subject, Action.INCLUDE_DELETED)

        conditions = [
            *ownership_filter(subject, appointments),
            *self.repository.lifecycle.visibility(filters.include_deleted),
        ]
        if filters.appointment_date:
            conditions.append(appointments.c.appointment_date == filters.appointment_date)
        if filters.status:
            conditions.append(appointments.c.status == filters.status.value)
        if filters.upcoming:
            conditions.append(appointments.c.appointment_date >= self.clock.today())
        if filters.doctor_id:
            conditions.append(appointments.c.doctor_id == filters.doctor_id)
        if filters.patient_id:
            conditions.append(appointments.c.patient_id == filters.patient_id)

        total, rows = await self.repository.search(conditions, filters.page, filters.page_size)
        return AppointmentListResponse(
            total=total,
            page=filters.page,
            page_size=filters.page_size,
            items=[to_response(row) for row in rows],
        )

    async def update_appointment(
        self,
        subject: Subject,
        appointment_id: UUID,
        data: AppointmentUpdate,
    ) -> AppointmentResponse:
        """
        Replace an appointment's parties, slot and status.

        Raises:
            NotFoundException: Appointment not visible to the caller
            ForbiddenException: Reassignment by a non-admin, or a patient moving the slot
            InvalidStateTransitionException: Status change not allowed from the current status,
                or a slot change on a completed or cancelled appointment
            SlotConflictException: New slot already taken
        """
        row = await self._load(appointment_id)
        current = row._mapping
        authorize(subject, Action.UPDATE, current)

        parties_changed = data.patient_id != current["patient_id"] or data.doctor_id != current["doctor_id"]
        slot_changed = (
            data.appointment_date != current["appointment_date"]
            or data.appointment_time != current["appointment_time"]
        )

        if parties_changed and subject.role != Role.ADMIN:
            raise ForbiddenException("Only admins can reassign an appointment")
        if slot_changed and subject.role == Role.PATIENT:
            raise ForbiddenException("Patients must cancel and rebook to change the date or time")
        if (slot_changed or parties_changed) and AppointmentStatus(current["status"]) in TERMINAL_STATUSES:
            raise InvalidStateTransitionException(
                f"Cannot move or reassign an appointment that is {current['status']}"
            )

        action = action_for_change(current["status"], data.status)
        if action is not None and not can_access(subject, action, current):
            raise ForbiddenException(f"Not allowed to {action.value} this appointment")

        if parties_changed:
            await self._ensure_live_identity(patients, data.patient_id, "patient")
            await self._ensure_live_identity(doctors, data.doctor_id, "doctor")

        if (slot_changed or parties_changed) and data.status != AppointmentStatus.CANCELLED:
            await self.checker.ensure_free(
                data.doctor_id,
                data.patient_id,
                data.appointment_date,
                data.appointment_time,
                exclude_appointment_id=appointment_id,
            )

        now = self.clock.now()
        values: dict[str, Any] = {
            "patient_id": data.patient_id,
            "doctor_id": data.doctor_id,
            "appointment_date": data.appointment_date,
            "appointment_time": data.appointment_time,
            "status": data.status.value,
            "reason": data.reason,
            "updated_at": now,
        }
        if action == Action.CANCEL:
            values["cancelled_at"] = now

        replaced = await self.repository.replace(appointment_id, values, expected_status=current["status"])
        if not replaced:
            await self._load(appointment_id)
            raise InvalidStateTransitionException("Appointment was modified by another request")

        if action is not None:
            logger.info(
                "appointment_transitioned",
                appointment_id=str(appointment_id),
                action=action.value,
                from_status=current["status"],
                to_status=data.status.value,
            )
        return to_response(await self._load(appointment_id))

    async def _transition(self, subject: Subject, appointment_id: UUID, action: Action) -> AppointmentResponse:
        row = await self._load(appointment_id)
        authorize(subject, action, row._mapping)

        current = row._mapping["status"]
        target = next_status(action, current)
        sources = frozenset(status.value for status in TRANSITIONS[action].sources)

        moved = await self.repository.update_status(appointment_id, target.value, sources, self.clock.now())
        if not moved:
            # Lost a race: report against the status that won
            fresh = await self._load(appointment_id)
            next_status(action, fresh._mapping["status"])
            raise InvalidStateTransitionException("Appointment was modified by another request")

        logger.info(
            "appointment_transitioned",
            appointment_id=str(appointment_id),
            action=action.value,
            from_status=current,
            to_status=target.value,
        )
        return to_response(await self._load(appointment_id))

    async def confirm_appointment(self, subject: Subject, appointment_id: UUID) -> AppointmentResponse:
        """scheduled -> confirmed, by the owning doctor or an admin."""
        return await self._transition(subject, appointment_id, Action.CONFIRM)

    async def start_appointment(self, subject: Subject, appointment_id: UUID) -> AppointmentResponse:
        """Begin the consultation: scheduled or confirmed -> in-progress."""
        return await self._transition(subject, appointment_id, Action.START)

    async def complete_appointment(self, subject: Subject, appointment_id: UUID) -> AppointmentResponse:
        """in-progress -> completed."""
        return await self._transition(subject, appointment_id, Action.COMPLETE)

    async def cancel_appointment(self, subject: Subject, appointment_id: UUID) -> AppointmentResponse:
        """Cancel and free the slot."""
        return await self._transition(subject, appointment_id, Action.CANCEL)

    async def _load_for_lifecycle(self, subject: Subject, appointment_id: UUID, action: Action) -> Row[Any]:
        row = await self._load(appointment_id, include_deleted=True)
        # Deleted rows are only visible to callers allowed to see deleted records
        if row._mapping["deleted_at"] is not None and not can_access(subject, Action.INCLUDE_DELETED, row._mapping):
            raise NotFoundException("Appointment not found")
        authorize(subject, action, row._mapping)
        return row

    async def delete_appointment(self, subject: Subject, appointment_id: UUID) -> None:
        """
        Soft delete an appointment.

        Raises:
            NotFoundException: Appointment absent or not visible to the caller
            ForbiddenException: Caller can see the appointment but may not delete it
            AlreadyDeletedException: Appointment already deleted
        """
        row = await self._load_for_lifecycle(subject, appointment_id, Action.DELETE)
        ensure_deletable(row._mapping["deleted_at"])
        await self.repository.soft_delete(appointment_id, self.clock.now())

    async def restore_appointment(self, subject: Subject, appointment_id: UUID) -> AppointmentResponse:
        """
        Restore a soft-deleted appointment with its status unchanged.

        Raises:
            NotFoundException: Appointment absent or not visible to the caller
            ForbiddenException: Caller may not restore
            NotDeletedException: Appointment is not deleted
            SlotConflictException: Slot was re-booked in the meantime
        """
        row = await self._load_for_lifecycle(subject, appointment_id, Action.RESTORE)
        ensure_restorable(row._mapping["deleted_at"])
        await self.repository.restore(appointment_id)
        return to_response(await self._load(appointment_id))
