"""Create prescriptions and prescription_drugs tables

Revision ID: 003
Revises: 002
Create Date: 2026-10-19

"""

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision = "003"
down_revision = "002"
branch_labels = None
depends_on = None


def upgrade() -> None:
    """Create prescription tables."""
    op.create_table(
        "prescriptions",
        sa.Column("id", sa.Uuid(as_uuid=True), nullable=False),
        sa.Column("patient_id", sa.Uuid(as_uuid=True), nullable=False),
        sa.Column("doctor_id", sa.Uuid(as_uuid=True), nullable=False),
        sa.Column("diagnosis", sa.Text(), nullable=True),
        sa.Column("date_issued", sa.Date(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=False),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["patient_id"], ["patients.id"], name="fk_prescriptions_patient_id"),
        sa.ForeignKeyConstraint(["doctor_id"], ["doctors.id"], name="fk_prescriptions_doctor_id"),
        sa.PrimaryKeyConstraint("id", name="pk_prescriptions"),
    )
    op.create_index("ix_prescriptions_patient_id", "prescriptions", ["patient_id"])
    op.create_index("ix_prescriptions_doctor_id", "prescriptions", ["doctor_id"])
    op.create_index("ix_prescriptions_deleted_at", "prescriptions", ["deleted_at"])

    op.create_table(
        "prescription_drugs",
        sa.Column("id", sa.Uuid(as_uuid=True), nullable=False),
        sa.Column("prescription_id", sa.Uuid(as_uuid=True), nullable=False),
        sa.Column("drug_name", sa.Text(), nullable=False),
        sa.Column("dosage", sa.String(length=100), nullable=True),
        sa.Column("duration", sa.String(length=100), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=False),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(
            ["prescription_id"], ["prescriptions.id"], name="fk_prescription_drugs_prescription_id"
        ),
        sa.PrimaryKeyConstraint("id", name="pk_prescription_drugs"),
    )
    op.create_index("ix_prescription_drugs_prescription_id", "prescription_drugs", ["prescription_id"])
    op.create_index("ix_prescription_drugs_deleted_at", "prescription_drugs", ["deleted_at"])


def downgrade() -> None:
    """Drop prescription tables."""
    op.drop_index("ix_prescription_drugs_deleted_at", table_name="prescription_drugs")
    op.drop_index("ix_prescription_drugs_prescription_id", table_name="prescription_drugs")
    op.drop_table("prescription_drugs")
    op.drop_index("ix_prescriptions_deleted_at", table_name="prescriptions")
    op.drop_index("ix_prescriptions_doctor_id", table_name="prescriptions")
    op.drop_index("ix_prescriptions_patient_id", table_name="prescriptions")
    op.drop_table("prescriptions")
