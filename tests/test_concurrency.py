"""Concurrent bookings for one slot: exactly one writer wins."""

import asyncio

import pytest
from httpx import AsyncClient

from clinic_portal.core.security import Role

CONTENDERS = 5


@pytest.mark.asyncio
async def test_concurrent_bookings_same_doctor_slot(client: AsyncClient, make_identity, doctor, headers_for, slot):
    patients = [await make_identity(Role.PATIENT) for _ in range(CONTENDERS)]

    responses = await asyncio.gather(
        *(
            client.post(
                "/api/v1/appointments",
                json={"doctor_id": str(doctor["id"]), **slot},
                headers=headers_for(p),
            )
            for p in patients
        )
    )

    codes = sorted(r.status_code for r in responses)
    assert codes == [201] + [400] * (CONTENDERS - 1)
    for response in responses:
        if response.status_code == 400:
            body = response.json()
            assert body["error"] == "SlotConflictException"
            assert body["side"] == "doctor"

    listing = await client.get("/api/v1/appointments", headers=headers_for(doctor))
    assert listing.json()["total"] == 1


@pytest.mark.asyncio
async def test_concurrent_bookings_same_patient_slot(client: AsyncClient, make_identity, patient, patient_headers, slot):
    doctors = [await make_identity(Role.DOCTOR) for _ in range(CONTENDERS)]

    responses = await asyncio.gather(
        *(
            client.post(
                "/api/v1/appointments",
                json={"doctor_id": str(d["id"]), **slot},
                headers=patient_headers,
            )
            for d in doctors
        )
    )

    codes = sorted(r.status_code for r in responses)
    assert codes == [201] + [400] * (CONTENDERS - 1)
    assert {r.json()["side"] for r in responses if r.status_code == 400} == {"patient"}

    listing = await client.get("/api/v1/appointments", headers=patient_headers)
    assert listing.json()["total"] == 1


@pytest.mark.asyncio
async def test_concurrent_bookings_on_different_slots_all_succeed(
    client: AsyncClient, make_identity, doctor, headers_for
):
    patients = [await make_identity(Role.PATIENT) for _ in range(CONTENDERS)]

    responses = await asyncio.gather(
        *(
            client.post(
                "/api/v1/appointments",
                json={
                    "doctor_id": str(doctor["id"]),
                    "appointment_date": "2025-03-10",
                    "appointment_time": f"{9 + i:02d}:00:00",
                },
                headers=headers_for(p),
            )
            for i, p in enumerate(patients)
        )
    )

    assert [r.status_code for r in responses] == [201] * CONTENDERS
