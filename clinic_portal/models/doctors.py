"""Doctor identity table using SQLAlchemy Core."""

from sqlalchemy import Boolean, Column, String, Table, Text, text

from clinic_portal.models.base import audit_columns, deleted_at_column, id_column, metadata

doctors = Table(
    "doctors",
    metadata,
    id_column(),
    # Personal information
    Column("first_name", String(100), nullable=False),
    Column("last_name", String(100), nullable=False),
    # Professional details
    Column("specialization", String(200), index=True),
    # Contact
    Column("email_address", Text, nullable=False, unique=True),
    Column("phone_number", String(20)),
    # Account state
    Column("is_verified", Boolean, nullable=False, server_default=text("false")),
    # Audit
    *audit_columns(),
    deleted_at_column(),
)
