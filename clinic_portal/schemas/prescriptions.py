"""Prescription schemas for request/response validation."""

from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class PrescriptionDrugCreate(BaseModel):
    """One line item."""

    drug_name: str = Field(..., min_length=1, max_length=200)
    dosage: str | None = Field(None, max_length=100)
    duration: str | None = Field(None, max_length=100)


class PrescriptionCreate(BaseModel):
    """Schema for issuing a prescription."""

    patient_id: UUID
    diagnosis: str | None = Field(None, max_length=2000)
    drugs: list[PrescriptionDrugCreate] = Field(..., min_length=1)


class PrescriptionDrugResponse(BaseModel):
    """Line item response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    prescription_id: UUID
    drug_name: str
    dosage: str | None = None
    duration: str | None = None
    deleted_at: datetime | None = None


class PrescriptionResponse(BaseModel):
    """Prescription with its live line items."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    patient_id: UUID
    doctor_id: UUID
    diagnosis: str | None = None
    date_issued: date
    created_at: datetime
    updated_at: datetime
    deleted_at: datetime | None = None
    drugs: list[PrescriptionDrugResponse] = []


class PrescriptionListResponse(BaseModel):
    """Paginated prescription listing."""

    total: int
    page: int
    page_size: int
    items: list[PrescriptionResponse]
