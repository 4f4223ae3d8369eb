"""Identity service: patients, doctors and admins."""

from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import Table, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from clinic_portal.config import settings
from clinic_portal.core.exceptions import NotFoundException
from clinic_portal.core.redis_client import CacheManager
from clinic_portal.core.security import Role
from clinic_portal.models.admins import admins
from clinic_portal.models.doctors import doctors
from clinic_portal.models.patients import patients
from clinic_portal.repositories.base import execute
from clinic_portal.services.authorization import Action, Subject, authorize, require
from clinic_portal.services.soft_delete import SoftDeleteLifecycle

TABLES: dict[Role, Table] = {
    Role.PATIENT: patients,
    Role.DOCTOR: doctors,
    Role.ADMIN: admins,
}


def identity_resource(role: Role, identity_id: UUID) -> dict[str, Any]:
    """Owning fields the guard checks for an identity record."""
    if role == Role.PATIENT:
        return {"patient_id": identity_id}
    if role == Role.DOCTOR:
        return {"doctor_id": identity_id}
    return {}


class IdentityService:
    """Service for identity lookups and the identity soft-delete lifecycle."""

    def __init__(self, cache_manager: CacheManager | None = None):
        """Initialize service with optional cache manager."""
        self.cache = cache_manager

    @staticmethod
    def _get_identity_cache_key(role: Role, identity_id: UUID) -> str:
        """Generate cache key for an identity."""
        return f"identity:{role.value}:{identity_id}"

    def _invalidate(self, role: Role, identity_id: UUID) -> None:
        if self.cache:
            self.cache.delete(self._get_identity_cache_key(role, identity_id))

    async def get_active_identity(self, db: AsyncSession, role: Role, identity_id: UUID) -> dict | None:
        """
        Resolve a live identity for the session, with caching.

        Args:
            db: Database session
            role: Role claimed by the token
            identity_id: Subject id claimed by the token

        Returns:
            ``{"id", "role", "is_verified"}`` or None when absent or deleted
        """
        cache_key = self._get_identity_cache_key(role, identity_id)
        if self.cache:
            cached = self.cache.get_json(cache_key)
            if cached:
                return cached

        table = TABLES[role]
        stmt = select(table.c.id, table.c.is_verified).where(
            table.c.id == identity_id,
            table.c.deleted_at.is_(None),
        )
        row = (await execute(db, stmt, f"{role.value}_identity_lookup")).first()
        if row is None:
            return None

        identity = {"id": str(row.id), "role": role.value, "is_verified": bool(row.is_verified)}
        if self.cache:
            self.cache.set_json(cache_key, identity, ttl=settings.identity_cache_ttl)
        return identity

    async def list_identities(
        self,
        db: AsyncSession,
        subject: Subject,
        role: Role,
        include_deleted: bool = False,
        page: int = 1,
        page_size: int = 20,
    ) -> tuple[int, list[dict]]:
        """
        List identities of one kind (admin only).

        Returns:
            Total count and the rows of the requested page
        """
        require(subject, Action.READ, {})
        if include_deleted:
            require(subject, Action.INCLUDE_DELETED)

        table = TABLES[role]
        conditions = [] if include_deleted else [table.c.deleted_at.is_(None)]

        count_stmt = select(func.count()).select_from(table).where(*conditions)
        total = (await execute(db, count_stmt, f"{role.value}_count")).scalar() or 0

        stmt = (
            select(table)
            .where(*conditions)
            .order_by(table.c.last_name, table.c.first_name)
            .limit(page_size)
            .offset((page - 1) * page_size)
        )
        rows = (await execute(db, stmt, f"{role.value}_list")).mappings().all()
        return total, [dict(row) for row in rows]

    async def get_identity(self, db: AsyncSession, subject: Subject, role: Role, identity_id: UUID) -> dict:
        """
        Get one live identity. Patients and doctors may read their own record.

        Raises:
            NotFoundException: Absent, deleted, or not visible to the caller
        """
        table = TABLES[role]
        stmt = select(table).where(table.c.id == identity_id, table.c.deleted_at.is_(None))
        row = (await execute(db, stmt, f"{role.value}_get")).mappings().first()
        if row is None:
            raise NotFoundException(f"{role.value.capitalize()} not found")

        resource = identity_resource(role, identity_id)
        if subject.role != role and subject.role != Role.ADMIN:
            resource = {}
        authorize(subject, Action.READ, resource)
        return dict(row)

    async def soft_delete_identity(
        self,
        db: AsyncSession,
        subject: Subject,
        role: Role,
        identity_id: UUID,
        now: datetime,
    ) -> None:
        """
        Soft delete an identity (admin only); historical appointments keep resolving it.

        Raises:
            ForbiddenException: Caller is not an admin
            NotFoundException: No such identity
            AlreadyDeletedException: Identity already deleted
        """
        require(subject, Action.DELETE, identity_resource(role, identity_id))
        await SoftDeleteLifecycle(TABLES[role], role.value).soft_delete(db, identity_id, now)
        self._invalidate(role, identity_id)

    async def restore_identity(
        self,
        db: AsyncSession,
        subject: Subject,
        role: Role,
        identity_id: UUID,
    ) -> dict:
        """
        Restore a soft-deleted identity (admin only).

        Raises:
            ForbiddenException: Caller is not an admin
            NotFoundException: No such identity
            NotDeletedException: Identity is not deleted
        """
        require(subject, Action.RESTORE, identity_resource(role, identity_id))
        row = await SoftDeleteLifecycle(TABLES[role], role.value).restore(db, identity_id)
        self._invalidate(role, identity_id)
        return dict(row._mapping)
