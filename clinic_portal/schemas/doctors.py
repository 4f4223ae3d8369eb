"""Doctor view schemas."""

from pydantic import BaseModel

from clinic_portal.schemas.appointments import AppointmentResponse
from clinic_portal.schemas.identities import PatientResponse


class MyPatientsResponse(BaseModel):
    """Patients the calling doctor has appointments with."""

    total: int
    items: list[PatientResponse]


class PatientDetailResponse(BaseModel):
    """Patient profile with one page of the appointment history shared with the doctor."""

    patient: PatientResponse
    total: int
    page: int
    page_size: int
    appointments: list[AppointmentResponse]
