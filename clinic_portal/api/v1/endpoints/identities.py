"""Identity record endpoints for patients, doctors and admins."""

from uuid import UUID

from fastapi import APIRouter, Query
from pydantic import BaseModel

from clinic_portal.config import settings
from clinic_portal.core.security import Role
from clinic_portal.dependencies import (
    CacheManagerDep,
    ClockDep,
    CurrentSubject,
    DatabaseSession,
)
from clinic_portal.schemas.common import MessageResponse
from clinic_portal.schemas.identities import (
    AdminListResponse,
    AdminResponse,
    DoctorListResponse,
    DoctorResponse,
    PatientListResponse,
    PatientResponse,
)
from clinic_portal.services.identity_service import IdentityService


def build_identity_router(
    role: Role,
    item_schema: type[BaseModel],
    list_schema: type[BaseModel],
) -> APIRouter:
    """
    Build list/get/delete/restore routes for one identity kind.

    Args:
        role: Identity kind served by the router
        item_schema: Response model for one record
        list_schema: Response model for a page of records

    Returns:
        Router to mount under the kind's prefix
    """
    kind = role.value
    router = APIRouter()

    @router.get("", response_model=list_schema, summary=f"List {kind}s (admin only)")
    async def list_identities(
        subject: CurrentSubject,
        db: DatabaseSession,
        cache_manager: CacheManagerDep,
        include_deleted: bool = Query(False),
        page: int = Query(1, ge=1),
        page_size: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    ) -> BaseModel:
        service = IdentityService(cache_manager)
        total, rows = await service.list_identities(db, subject, role, include_deleted, page, page_size)
        return list_schema(total=total, page=page, page_size=page_size, items=rows)

    @router.put("/restore/{identity_id}", response_model=item_schema, summary=f"Restore a deleted {kind}")
    async def restore_identity(
        identity_id: UUID,
        subject: CurrentSubject,
        db: DatabaseSession,
        cache_manager: CacheManagerDep,
    ) -> BaseModel:
        service = IdentityService(cache_manager)
        row = await service.restore_identity(db, subject, role, identity_id)
        return item_schema.model_validate(row)

    @router.get("/{identity_id}", response_model=item_schema, summary=f"Get {kind}")
    async def get_identity(
        identity_id: UUID,
        subject: CurrentSubject,
        db: DatabaseSession,
        cache_manager: CacheManagerDep,
    ) -> BaseModel:
        service = IdentityService(cache_manager)
        return item_schema.model_validate(await service.get_identity(db, subject, role, identity_id))

    @router.delete("/{identity_id}", response_model=MessageResponse, summary=f"Delete {kind}")
    async def delete_identity(
        identity_id: UUID,
        subject: CurrentSubject,
        db: DatabaseSession,
        cache_manager: CacheManagerDep,
        clock: ClockDep,
    ) -> MessageResponse:
        service = IdentityService(cache_manager)
        await service.soft_delete_identity(db, subject, role, identity_id, clock.now())
        return MessageResponse(message=f"{kind.capitalize()} deleted successfully")

    return router


router = APIRouter()
router.include_router(
    build_identity_router(Role.PATIENT, PatientResponse, PatientListResponse),
    prefix="/patients",
)
router.include_router(
    build_identity_router(Role.DOCTOR, DoctorResponse, DoctorListResponse),
    prefix="/doctors",
)
router.include_router(
    build_identity_router(Role.ADMIN, AdminResponse, AdminListResponse),
    prefix="/admins",
)
