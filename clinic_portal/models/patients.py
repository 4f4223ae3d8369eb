"""Patient identity table using SQLAlchemy Core."""

from sqlalchemy import Boolean, Column, Date, String, Table, Text, text

from clinic_portal.models.base import audit_columns, deleted_at_column, id_column, metadata

patients = Table(
    "patients",
    metadata,
    id_column(),
    # Personal information
    Column("first_name", String(100), nullable=False),
    Column("last_name", String(100), nullable=False),
    Column("date_of_birth", Date),
    Column("gender", String(20)),
    # Contact
    Column("email_address", Text, nullable=False, unique=True),
    Column("phone_number", String(20)),
    # Account state
    Column("is_verified", Boolean, nullable=False, server_default=text("false")),
    # Audit
    *audit_columns(),
    deleted_at_column(),
)
