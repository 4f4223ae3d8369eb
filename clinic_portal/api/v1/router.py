"""API v1 router configuration."""

from fastapi import APIRouter

from clinic_portal.api.v1.endpoints import (
    appointments,
    doctors,
    health,
    identities,
    prescriptions,
)

api_router = APIRouter()

api_router.include_router(health.router, tags=["Health"])
api_router.include_router(appointments.router, prefix="/appointments", tags=["Appointments"])
# Doctor workspace routes must win over /doctors/{identity_id}
api_router.include_router(doctors.router, prefix="/doctors", tags=["Doctors"])
api_router.include_router(prescriptions.router, prefix="/prescriptions", tags=["Prescriptions"])
api_router.include_router(identities.router, tags=["Identities"])
