"""Tests for the shared soft-delete lifecycle."""

from datetime import UTC, datetime
from uuid import uuid4

import pytest
from sqlalchemy import select

from clinic_portal.core.exceptions import (
    AlreadyDeletedException,
    NotDeletedException,
    NotFoundException,
)
from clinic_portal.models.patients import patients
from clinic_portal.services.soft_delete import SoftDeleteLifecycle

LATER = datetime(2025, 3, 5, 12, 0, tzinfo=UTC)

lifecycle = SoftDeleteLifecycle(patients, "patient")


async def _fetch(db_session, record_id):
    result = await db_session.execute(select(patients).where(patients.c.id == record_id))
    return result.mappings().one()


@pytest.mark.asyncio
class TestSoftDeleteLifecycle:
    async def test_delete_sets_marker_only(self, db_session, patient):
        before = dict(await _fetch(db_session, patient["id"]))

        await lifecycle.soft_delete(db_session, patient["id"], LATER)

        after = dict(await _fetch(db_session, patient["id"]))
        assert after["deleted_at"] is not None
        assert {k: v for k, v in after.items() if k != "deleted_at"} == {
            k: v for k, v in before.items() if k != "deleted_at"
        }

    async def test_restore_round_trips(self, db_session, patient):
        before = dict(await _fetch(db_session, patient["id"]))

        await lifecycle.soft_delete(db_session, patient["id"], LATER)
        await lifecycle.restore(db_session, patient["id"])

        assert dict(await _fetch(db_session, patient["id"])) == before

    async def test_delete_twice(self, db_session, patient):
        await lifecycle.soft_delete(db_session, patient["id"], LATER)

        with pytest.raises(AlreadyDeletedException):
            await lifecycle.soft_delete(db_session, patient["id"], LATER)

    async def test_restore_live_row(self, db_session, patient):
        with pytest.raises(NotDeletedException):
            await lifecycle.restore(db_session, patient["id"])

    async def test_unknown_row(self, db_session):
        with pytest.raises(NotFoundException):
            await lifecycle.soft_delete(db_session, uuid4(), LATER)
        with pytest.raises(NotFoundException):
            await lifecycle.restore(db_session, uuid4())

    async def test_without_autocommit_rollback_discards(self, db_session, patient):
        await lifecycle.soft_delete(db_session, patient["id"], LATER, autocommit=False)
        await db_session.rollback()

        assert (await _fetch(db_session, patient["id"]))["deleted_at"] is None

    async def test_visibility(self, db_session, patient, other_patient):
        await lifecycle.soft_delete(db_session, patient["id"], LATER)

        live = await db_session.execute(select(patients.c.id).where(*lifecycle.visibility()))
        everything = await db_session.execute(select(patients.c.id).where(*lifecycle.visibility(True)))

        assert {row.id for row in live} == {other_patient["id"]}
        assert {row.id for row in everything} == {patient["id"], other_patient["id"]}
