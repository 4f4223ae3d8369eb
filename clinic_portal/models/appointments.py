"""Appointments table model using SQLAlchemy Core."""

from sqlalchemy import (
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Table,
    Text,
    Time,
    Uuid,
    text,
)

from clinic_portal.models.base import audit_columns, deleted_at_column, id_column, metadata

APPOINTMENT_STATUSES = ("scheduled", "confirmed", "in-progress", "completed", "cancelled")

# Rows that occupy a slot: live and not cancelled
ACTIVE_SLOT_PREDICATE = text("deleted_at IS NULL AND status <> 'cancelled'")

appointments = Table(
    "appointments",
    metadata,
    id_column(),
    # Ownership / references (rows are never removed, so these always resolve)
    Column("patient_id", Uuid(as_uuid=True), ForeignKey("patients.id"), nullable=False, index=True),
    Column("doctor_id", Uuid(as_uuid=True), ForeignKey("doctors.id"), nullable=False, index=True),
    # Slot
    Column("appointment_date", Date, nullable=False, index=True),
    Column("appointment_time", Time, nullable=False),
    # Status management
    Column("status", Text, nullable=False, server_default="scheduled"),
    Column("reason", Text, nullable=True),
    # Audit fields
    *audit_columns(),
    Column("cancelled_at", DateTime(timezone=True), nullable=True),
    # Soft delete (healthcare compliance)
    deleted_at_column(),
    # Constraints
    CheckConstraint(
        "status IN ('scheduled', 'confirmed', 'in-progress', 'completed', 'cancelled')",
        name="status_check",
    ),
)

# One active appointment per doctor slot and per patient slot. These indexes
# make the booking insert the arbiter when two requests race for a slot.
Index(
    "uq_appointments_doctor_slot",
    appointments.c.doctor_id,
    appointments.c.appointment_date,
    appointments.c.appointment_time,
    unique=True,
    postgresql_where=ACTIVE_SLOT_PREDICATE,
    sqlite_where=ACTIVE_SLOT_PREDICATE,
)
Index(
    "uq_appointments_patient_slot",
    appointments.c.patient_id,
    appointments.c.appointment_date,
    appointments.c.appointment_time,
    unique=True,
    postgresql_where=ACTIVE_SLOT_PREDICATE,
    sqlite_where=ACTIVE_SLOT_PREDICATE,
)
