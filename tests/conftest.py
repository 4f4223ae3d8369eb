import os
from collections.abc import AsyncGenerator, Callable
from datetime import UTC, date, datetime, time, timedelta
from typing import Any
from uuid import UUID, uuid4

import pytest
import pytest_asyncio
from dotenv import load_dotenv
from httpx import ASGITransport, AsyncClient
from sqlalchemy import insert
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

# Load environment variables from .env file
load_dotenv()

from clinic_portal.config import settings
from clinic_portal.core.clock import FixedClock
from clinic_portal.core.redis_client import get_cache_manager
from clinic_portal.core.security import Role, create_access_token
from clinic_portal.database import build_engine, get_db
from clinic_portal.dependencies import get_clock
from clinic_portal.main import app
from clinic_portal.models import admins, doctors, metadata, patients
from clinic_portal.repositories.appointments import AppointmentRepository

# Tests drop and recreate every table: never point them at the application database
TEST_DATABASE_URL = os.getenv("TEST_DATABASE_URL")
if TEST_DATABASE_URL and TEST_DATABASE_URL == settings.database_url:
    raise RuntimeError("TEST_DATABASE_URL must differ from DATABASE_URL")

NOW = datetime(2025, 3, 1, 8, 0, tzinfo=UTC)

TABLES = {Role.PATIENT: patients, Role.DOCTOR: doctors, Role.ADMIN: admins}


@pytest_asyncio.fixture
async def test_engine(tmp_path) -> AsyncGenerator[AsyncEngine, None]:
    """Engine on TEST_DATABASE_URL, or on a throwaway SQLite file."""
    if TEST_DATABASE_URL:
        url = TEST_DATABASE_URL.replace("postgresql://", "postgresql+asyncpg://", 1)
    else:
        url = f"sqlite+aiosqlite:///{tmp_path / 'clinic_portal_test.db'}"

    engine = build_engine(url)
    async with engine.begin() as conn:
        await conn.run_sync(metadata.drop_all)
        await conn.run_sync(metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def session_factory(test_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Factory for independent sessions, one per simulated connection."""
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def clock() -> FixedClock:
    """Clock pinned to 2025-03-01 08:00 UTC."""
    return FixedClock(NOW)


@pytest_asyncio.fixture
async def client(session_factory, clock: FixedClock) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client; every request gets its own session like a real connection."""

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_clock] = lambda: clock
    app.dependency_overrides[get_cache_manager] = lambda: None

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
def make_identity(session_factory) -> Callable[..., Any]:
    """Insert an identity row and return its values."""

    async def _make(role: Role, verified: bool = True, **fields: Any) -> dict[str, Any]:
        identity_id = uuid4()
        values: dict[str, Any] = {
            "id": identity_id,
            "first_name": fields.pop("first_name", role.value.capitalize()),
            "last_name": fields.pop("last_name", identity_id.hex[:8]),
            "email_address": fields.pop("email_address", f"{identity_id.hex}@clinic.test"),
            "is_verified": verified,
            "created_at": NOW,
            "updated_at": NOW,
        }
        if role == Role.ADMIN:
            values["username"] = fields.pop("username", f"admin_{identity_id.hex[:8]}")
        values.update(fields)

        async with session_factory() as session:
            await session.execute(insert(TABLES[role]).values(**values))
            await session.commit()
        return {**values, "role": role}

    return _make


def _auth_headers(identity: dict[str, Any], **token_overrides: Any) -> dict[str, str]:
    """Bearer headers carrying the identity's id and role."""
    token_data = {"sub": str(identity["id"]), "role": identity["role"].value, **token_overrides}
    token = create_access_token(data=token_data, expires_delta=timedelta(minutes=30))
    return {"Authorization": f"Bearer {token}"}


@pytest_asyncio.fixture
async def patient(make_identity) -> dict:
    return await make_identity(Role.PATIENT, first_name="Pat", last_name="One")


@pytest_asyncio.fixture
async def other_patient(make_identity) -> dict:
    return await make_identity(Role.PATIENT, first_name="Pia", last_name="Two")


@pytest_asyncio.fixture
async def doctor(make_identity) -> dict:
    return await make_identity(Role.DOCTOR, first_name="Dana", last_name="House", specialization="Cardiology")


@pytest_asyncio.fixture
async def other_doctor(make_identity) -> dict:
    return await make_identity(Role.DOCTOR, first_name="Drew", last_name="Grey")


@pytest_asyncio.fixture
async def admin(make_identity) -> dict:
    return await make_identity(Role.ADMIN, first_name="Ada", last_name="Root")


@pytest.fixture
def patient_headers(patient) -> dict:
    return _auth_headers(patient)


@pytest.fixture
def other_patient_headers(other_patient) -> dict:
    return _auth_headers(other_patient)


@pytest.fixture
def doctor_headers(doctor) -> dict:
    return _auth_headers(doctor)


@pytest.fixture
def other_doctor_headers(other_doctor) -> dict:
    return _auth_headers(other_doctor)


@pytest.fixture
def admin_headers(admin) -> dict:
    return _auth_headers(admin)


@pytest.fixture
def slot() -> dict:
    """The slot used throughout the scheduling tests."""
    return {"appointment_date": "2025-03-10", "appointment_time": "09:00:00"}


@pytest.fixture
def book(client: AsyncClient) -> Callable[..., Any]:
    """POST /appointments and return the response."""

    async def _book(headers: dict, **payload: Any):
        body = {key: str(value) for key, value in payload.items() if value is not None}
        return await client.post("/api/v1/appointments", json=body, headers=headers)

    return _book


@pytest.fixture
def headers_for() -> Callable[..., dict[str, str]]:
    """Build bearer headers for any identity, optionally overriding token claims."""
    return _auth_headers


@pytest.fixture
def insert_appointment(session_factory) -> Callable[..., Any]:
    """Book directly through the repository, bypassing HTTP."""

    async def _insert(
        patient: dict,
        doctor: dict,
        appointment_date: date = date(2025, 3, 10),
        appointment_time: time = time(9, 0),
        status: str = "scheduled",
    ) -> UUID:
        async with session_factory() as session:
            return await AppointmentRepository(session).insert_if_free(
                {
                    "id": uuid4(),
                    "patient_id": patient["id"],
                    "doctor_id": doctor["id"],
                    "appointment_date": appointment_date,
                    "appointment_time": appointment_time,
                    "status": status,
                    "created_at": NOW,
                    "updated_at": NOW,
                }
            )

    return _insert
