"""
Soft-delete / restore lifecycle.

Appointments, identities, prescriptions and prescription line items share one
deletion discipline: ``deleted_at`` is NULL while a row is live, set by an
explicit delete, and cleared by an explicit restore. Rows are never removed, so
foreign keys into deleted rows keep resolving for historical reads.

Neither operation touches ``updated_at`` or any other column, which keeps
``restore(soft_delete(row))`` equal to ``row``.
"""

from datetime import datetime
from typing import Any
from uuid import UUID

import structlog
from sqlalchemy import Row, Table, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql.elements import ColumnElement

from clinic_portal.core.exceptions import (
    AlreadyDeletedException,
    NotDeletedException,
    NotFoundException,
)
from clinic_portal.repositories.base import commit, execute

logger = structlog.get_logger()


class SoftDeleteLifecycle:
    """Deletion-marker operations for one table."""

    def __init__(self, table: Table, entity: str):
        """
        Args:
            table: Table carrying ``id`` and ``deleted_at`` columns
            entity: Human readable name used in messages and logs
        """
        self.table = table
        self.entity = entity

    def live(self) -> ColumnElement[bool]:
        """Default read filter."""
        return self.table.c.deleted_at.is_(None)

    def visibility(self, include_deleted: bool = False) -> list[ColumnElement[bool]]:
        """WHERE clauses for a read path; ``include_deleted`` is for admins only."""
        return [] if include_deleted else [self.live()]

    async def _exists(self, db: AsyncSession, record_id: UUID) -> bool:
        stmt = select(self.table.c.id).where(self.table.c.id == record_id)
        result = await execute(db, stmt, f"{self.entity}_lookup")
        return result.first() is not None

    async def soft_delete(
        self,
        db: AsyncSession,
        record_id: UUID,
        now: datetime,
        autocommit: bool = True,
    ) -> Row[Any]:
        """
        Mark a live row as deleted.

        Raises:
            NotFoundException: No row with that id
            AlreadyDeletedException: Row is already deleted
        """
        stmt = (
            update(self.table)
            .where(self.table.c.id == record_id, self.live())
            .values(deleted_at=now)
            .returning(self.table)
        )
        row = (await execute(db, stmt, f"{self.entity}_soft_delete")).first()
        if row is None:
            if not await self._exists(db, record_id):
                raise NotFoundException(f"{self.entity.capitalize()} not found")
            raise AlreadyDeletedException(f"{self.entity.capitalize()} not found or already deleted")

        if autocommit:
            await commit(db, f"{self.entity}_soft_delete")
        logger.info("record_soft_deleted", entity=self.entity, record_id=str(record_id))
        return row

    async def restore(
        self,
        db: AsyncSession,
        record_id: UUID,
        autocommit: bool = True,
    ) -> Row[Any]:
        """
        Clear the deletion marker of a deleted row; nothing else is written.

        Raises:
            NotFoundException: No row with that id
            NotDeletedException: Row is not deleted
        """
        stmt = (
            update(self.table)
            .where(self.table.c.id == record_id, self.table.c.deleted_at.is_not(None))
            .values(deleted_at=None)
            .returning(self.table)
        )
        row = (await execute(db, stmt, f"{self.entity}_restore")).first()
        if row is None:
            if not await self._exists(db, record_id):
                raise NotFoundException(f"{self.entity.capitalize()} not found")
            raise NotDeletedException(f"{self.entity.capitalize()} is not deleted")

        if autocommit:
            await commit(db, f"{self.entity}_restore")
        logger.info("record_restored", entity=self.entity, record_id=str(record_id))
        return row
