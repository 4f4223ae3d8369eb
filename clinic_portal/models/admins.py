"""Admin identity table using SQLAlchemy Core."""

from sqlalchemy import Boolean, Column, String, Table, Text, text

from clinic_portal.models.base import audit_columns, deleted_at_column, id_column, metadata

admins = Table(
    "admins",
    metadata,
    id_column(),
    Column("first_name", String(100), nullable=False),
    Column("last_name", String(100), nullable=False),
    Column("username", String(100), nullable=False, unique=True),
    Column("email_address", Text, nullable=False, unique=True),
    # Account state
    Column("is_verified", Boolean, nullable=False, server_default=text("false")),
    # Audit
    *audit_columns(),
    deleted_at_column(),
)
