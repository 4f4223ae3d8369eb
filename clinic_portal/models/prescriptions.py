"""Prescription tables using SQLAlchemy Core."""

from sqlalchemy import Column, Date, ForeignKey, String, Table, Text, Uuid

from clinic_portal.models.base import audit_columns, deleted_at_column, id_column, metadata

prescriptions = Table(
    "prescriptions",
    metadata,
    id_column(),
    Column("patient_id", Uuid(as_uuid=True), ForeignKey("patients.id"), nullable=False, index=True),
    Column("doctor_id", Uuid(as_uuid=True), ForeignKey("doctors.id"), nullable=False, index=True),
    Column("diagnosis", Text, nullable=True),
    Column("date_issued", Date, nullable=False),
    *audit_columns(),
    deleted_at_column(),
)

# Line items
prescription_drugs = Table(
    "prescription_drugs",
    metadata,
    id_column(),
    Column(
        "prescription_id",
        Uuid(as_uuid=True),
        ForeignKey("prescriptions.id"),
        nullable=False,
        index=True,
    ),
    Column("drug_name", Text, nullable=False),
    Column("dosage", String(100), nullable=True),
    Column("duration", String(100), nullable=True),
    *audit_columns(),
    deleted_at_column(),
)
