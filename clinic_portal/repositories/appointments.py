"""Appointment persistence: slot lookups and conditional writes."""

from datetime import date, datetime, time
from typing import Any
from uuid import UUID

import structlog
from sqlalchemy import Row, and_, exists, func, insert, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql.elements import ColumnElement

from clinic_portal.core.exceptions import SlotConflictException, StorageException
from clinic_portal.models.appointments import appointments
from clinic_portal.models.doctors import doctors
from clinic_portal.models.patients import patients
from clinic_portal.repositories.base import commit, execute
from clinic_portal.services.soft_delete import SoftDeleteLifecycle

logger = structlog.get_logger()

# Names are resolved from identity rows whether or not they were deleted later
_detail_columns = (
    appointments,
    (patients.c.first_name + " " + patients.c.last_name).label("patient_name"),
    (doctors.c.first_name + " " + doctors.c.last_name).label("doctor_name"),
)
_detail_from = appointments.outerjoin(patients, appointments.c.patient_id == patients.c.id).outerjoin(
    doctors, appointments.c.doctor_id == doctors.c.id
)


def active_slot() -> ColumnElement[bool]:
    """Rows that occupy their slot."""
    return and_(appointments.c.deleted_at.is_(None), appointments.c.status != "cancelled")


# PostgreSQL reports the index name, SQLite the indexed columns
_SLOT_MARKERS = {
    "doctor": ("uq_appointments_doctor_slot", "unique constraint failed: appointments.doctor_id"),
    "patient": ("uq_appointments_patient_slot", "unique constraint failed: appointments.patient_id"),
}


def _side_from_error(error: IntegrityError) -> str | None:
    message = str(error.orig).lower()
    for side, markers in _SLOT_MARKERS.items():
        if any(marker in message for marker in markers):
            return side
    return None


class AppointmentRepository:
    """Scheduling store backed by the ``appointments`` table."""

    lifecycle = SoftDeleteLifecycle(appointments, "appointment")

    def __init__(self, db: AsyncSession):
        """Initialize repository with database session."""
        self.db = db

    async def get(self, appointment_id: UUID, include_deleted: bool = False) -> Row[Any] | None:
        """Fetch one appointment with party names."""
        conditions = [appointments.c.id == appointment_id, *self.lifecycle.visibility(include_deleted)]
        stmt = select(*_detail_columns).select_from(_detail_from).where(*conditions)
        result = await execute(self.db, stmt, "appointment_get")
        return result.first()

    async def search(
        self,
        conditions: list[ColumnElement[bool]],
        page: int,
        page_size: int,
    ) -> tuple[int, list[Row[Any]]]:
        """
        Page through appointments matching the given conditions.

        Returns:
            Total count and the rows of the requested page
        """
        count_stmt = select(func.count()).select_from(appointments).where(*conditions)
        total = (await execute(self.db, count_stmt, "appointment_count")).scalar() or 0

        stmt = (
            select(*_detail_columns)
            .select_from(_detail_from)
            .where(*conditions)
            .order_by(appointments.c.appointment_date.desc(), appointments.c.appointment_time.desc())
            .limit(page_size)
            .offset((page - 1) * page_size)
        )
        rows = (await execute(self.db, stmt, "appointment_list")).fetchall()
        return total, list(rows)

    async def find_active_by_slot(
        self,
        appointment_date: date,
        appointment_time: time,
        doctor_id: UUID | None = None,
        patient_id: UUID | None = None,
        exclude_id: UUID | None = None,
    ) -> Row[Any] | None:
        """
        Find the active appointment holding a doctor's or a patient's slot.

        Exactly one of ``doctor_id`` / ``patient_id`` is expected.
        """
        conditions = [
            appointments.c.appointment_date == appointment_date,
            appointments.c.appointment_time == appointment_time,
            active_slot(),
        ]
        if doctor_id is not None:
            conditions.append(appointments.c.doctor_id == doctor_id)
        if patient_id is not None:
            conditions.append(appointments.c.patient_id == patient_id)
        if exclude_id is not None:
            conditions.append(appointments.c.id != exclude_id)

        stmt = select(appointments).where(*conditions).limit(1)
        result = await execute(self.db, stmt, "appointment_slot_lookup")
        return result.first()

    async def _slot_conflict(self, error: IntegrityError, values: dict[str, Any]) -> SlotConflictException:
        """Translate a unique-index violation into the side that holds the slot."""
        await self.db.rollback()
        side = _side_from_error(error)
        if side is None:
            holder = await self.find_active_by_slot(
                values["appointment_date"],
                values["appointment_time"],
                doctor_id=values["doctor_id"],
                exclude_id=values.get("id"),
            )
            if holder is not None:
                side = "doctor"
            elif await self.find_active_by_slot(
                values["appointment_date"],
                values["appointment_time"],
                patient_id=values["patient_id"],
                exclude_id=values.get("id"),
            ):
                side = "patient"
        if side is None:
            logger.error("storage_error", operation="appointment_write", error=str(error))
            raise StorageException() from error
        return SlotConflictException(side)

    async def insert_if_free(self, values: dict[str, Any]) -> UUID:
        """
        Insert an appointment unless its doctor or patient slot is taken.

        The partial unique indexes on the slot columns decide the race; the
        losing writer gets SlotConflictException and nothing is persisted.

        Args:
            values: Column values, including ``id`` and timestamps

        Returns:
            ID of the new appointment

        Raises:
            SlotConflictException: Slot already held by an active appointment
        """
        stmt = insert(appointments).values(**values).returning(appointments.c.id)
        try:
            result = await execute(self.db, stmt, "appointment_insert")
            appointment_id = result.scalar_one()
            await commit(self.db, "appointment_insert")
        except IntegrityError as e:
            raise await self._slot_conflict(e, values) from e
        return appointment_id

    async def replace(
        self,
        appointment_id: UUID,
        values: dict[str, Any],
        expected_status: str,
    ) -> bool:
        """
        Overwrite an appointment if it is still live and in ``expected_status``.

        Returns:
            False when the row changed underneath the caller

        Raises:
            SlotConflictException: New slot already held by an active appointment
        """
        stmt = (
            update(appointments)
            .where(
                appointments.c.id == appointment_id,
                appointments.c.status == expected_status,
                self.lifecycle.live(),
            )
            .values(**values)
            .returning(appointments.c.id)
        )
        try:
            row = (await execute(self.db, stmt, "appointment_replace")).first()
            await commit(self.db, "appointment_replace")
        except IntegrityError as e:
            raise await self._slot_conflict(e, {"id": appointment_id, **values}) from e
        return row is not None

    async def update_status(
        self,
        appointment_id: UUID,
        target: str,
        from_statuses: frozenset[str],
        now: datetime,
    ) -> bool:
        """
        Move a live appointment to ``target`` if its status is one of ``from_statuses``.

        Returns:
            False when the guard did not match (status moved concurrently)
        """
        values: dict[str, Any] = {"status": target, "updated_at": now}
        if target == "cancelled":
            values["cancelled_at"] = now

        stmt = (
            update(appointments)
            .where(
                appointments.c.id == appointment_id,
                appointments.c.status.in_(sorted(from_statuses)),
                self.lifecycle.live(),
            )
            .values(**values)
            .returning(appointments.c.id)
        )
        row = (await execute(self.db, stmt, "appointment_update_status")).first()
        await commit(self.db, "appointment_update_status")
        return row is not None

    async def soft_delete(self, appointment_id: UUID, now: datetime) -> None:
        """Mark an appointment deleted; it stops occupying its slot."""
        await self.lifecycle.soft_delete(self.db, appointment_id, now)

    async def restore(self, appointment_id: UUID) -> None:
        """
        Clear the deletion marker.

        Raises:
            SlotConflictException: Slot was re-booked while the row was deleted
        """
        current = await self.get(appointment_id, include_deleted=True)
        try:
            await self.lifecycle.restore(self.db, appointment_id)
        except IntegrityError as e:
            values = dict(current._mapping) if current is not None else {}
            raise await self._slot_conflict(e, values) from e

    async def has_relationship(self, doctor_id: UUID, patient_id: UUID) -> bool:
        """A doctor and a patient are related by any live appointment, cancelled included."""
        stmt = select(
            exists().where(
                appointments.c.doctor_id == doctor_id,
                appointments.c.patient_id == patient_id,
                self.lifecycle.live(),
            )
        )
        result = await execute(self.db, stmt, "appointment_relationship")
        return bool(result.scalar())

    async def patients_for_doctor(self, doctor_id: UUID) -> list[Row[Any]]:
        """Live patients with at least one live appointment with the doctor."""
        linked = select(appointments.c.patient_id).where(
            appointments.c.doctor_id == doctor_id,
            self.lifecycle.live(),
        )
        stmt = (
            select(patients)
            .where(patients.c.id.in_(linked), patients.c.deleted_at.is_(None))
            .order_by(patients.c.last_name, patients.c.first_name)
        )
        result = await execute(self.db, stmt, "appointment_related_patients")
        return list(result.fetchall())
