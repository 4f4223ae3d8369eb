"""Shared metadata and column helpers for all tables."""

from uuid import uuid4

from sqlalchemy import Column, DateTime, MetaData, Uuid, text

# Metadata for all tables
metadata = MetaData(
    naming_convention={
        "ix": "ix_%(column_0_label)s",
        "uq": "uq_%(table_name)s_%(column_0_name)s",
        "ck": "%(table_name)s_%(constraint_name)s",
        "fk": "fk_%(table_name)s_%(column_0_name)s",
        "pk": "pk_%(table_name)s",
    }
)


def id_column() -> Column:
    """UUID primary key generated client side so every backend agrees."""
    return Column("id", Uuid(as_uuid=True), primary_key=True, default=uuid4)


def audit_columns() -> list[Column]:
    """created_at / updated_at pair."""
    return [
        Column("created_at", DateTime(timezone=True), nullable=False, server_default=text("CURRENT_TIMESTAMP")),
        Column("updated_at", DateTime(timezone=True), nullable=False, server_default=text("CURRENT_TIMESTAMP")),
    ]


def deleted_at_column() -> Column:
    """Soft-delete marker: NULL while the row is live."""
    return Column("deleted_at", DateTime(timezone=True), nullable=True, index=True)
