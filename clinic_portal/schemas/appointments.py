"""Appointment schemas for request/response validation."""

from datetime import date, datetime, time
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator


class AppointmentStatus(str, Enum):
    """Appointment status enumeration (closed, case-sensitive)."""

    SCHEDULED = "scheduled"
    CONFIRMED = "confirmed"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


# Statuses a booking may start in
INITIAL_STATUSES = frozenset({AppointmentStatus.SCHEDULED, AppointmentStatus.CONFIRMED})


def whole_second_slot(v: time) -> time:
    """Slot times are naive and whole-second (HH:MM:SS)."""
    if v.tzinfo is not None:
        raise ValueError("appointment_time must not carry a UTC offset")
    if v.microsecond:
        raise ValueError("appointment_time must be whole seconds (HH:MM:SS)")
    return v


class AppointmentCreate(BaseModel):
    """
    Schema for booking a new appointment.

    Patients book for themselves, so ``patient_id`` may be omitted by them.
    """

    patient_id: UUID | None = None
    doctor_id: UUID
    appointment_date: date
    appointment_time: time
    status: AppointmentStatus | None = None
    reason: str | None = Field(None, max_length=500)

    @field_validator("appointment_time")
    @classmethod
    def validate_time(cls, v: time) -> time:
        """Reject sub-second and offset-carrying slot times."""
        return whole_second_slot(v)


class AppointmentUpdate(BaseModel):
    """Schema for a full replace of an appointment."""

    patient_id: UUID
    doctor_id: UUID
    appointment_date: date
    appointment_time: time
    status: AppointmentStatus
    reason: str | None = Field(None, max_length=500)

    @field_validator("appointment_time")
    @classmethod
    def validate_time(cls, v: time) -> time:
        """Reject sub-second and offset-carrying slot times."""
        return whole_second_slot(v)


class AppointmentActionRequest(BaseModel):
    """Body for doctor transition endpoints."""

    model_config = ConfigDict(populate_by_name=True)

    appointment_id: UUID = Field(..., alias="appointmentId")


class AppointmentResponse(BaseModel):
    """Schema for appointment response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    patient_id: UUID
    doctor_id: UUID
    patient_name: str | None = None
    doctor_name: str | None = None
    appointment_date: date
    appointment_time: time
    status: AppointmentStatus
    reason: str | None = None
    created_at: datetime
    updated_at: datetime
    cancelled_at: datetime | None = None
    deleted_at: datetime | None = None


class AppointmentEnvelope(BaseModel):
    """Mutation response carrying a message and the resulting record."""

    message: str
    appointment: AppointmentResponse


class AppointmentListResponse(BaseModel):
    """Schema for paginated appointment list response."""

    total: int
    page: int
    page_size: int
    items: list[AppointmentResponse]


class AppointmentFilters(BaseModel):
    """Schema for appointment filtering."""

    appointment_date: date | None = None
    status: AppointmentStatus | None = None
    upcoming: bool = False
    doctor_id: UUID | None = None
    patient_id: UUID | None = None
    include_deleted: bool = False
    page: int = Field(default=1, ge=1)
    page_size: int = Field(default=20, ge=1, le=100)
