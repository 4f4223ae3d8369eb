"""Identity (patient / doctor / admin) schemas."""

from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class IdentityResponse(BaseModel):
    """Fields every identity kind exposes."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    first_name: str
    last_name: str
    email_address: str
    is_verified: bool
    created_at: datetime
    updated_at: datetime
    deleted_at: datetime | None = None


class PatientResponse(IdentityResponse):
    """Patient record."""

    date_of_birth: date | None = None
    gender: str | None = None
    phone_number: str | None = None


class DoctorResponse(IdentityResponse):
    """Doctor record."""

    specialization: str | None = None
    phone_number: str | None = None


class AdminResponse(IdentityResponse):
    """Admin record."""

    username: str


class PatientListResponse(BaseModel):
    """Paginated patient listing."""

    total: int
    page: int
    page_size: int
    items: list[PatientResponse]


class DoctorListResponse(BaseModel):
    """Paginated doctor listing."""

    total: int
    page: int
    page_size: int
    items: list[DoctorResponse]


class AdminListResponse(BaseModel):
    """Paginated admin listing."""

    total: int
    page: int
    page_size: int
    items: list[AdminResponse]
