"""Tests for the doctor workspace endpoints."""

from datetime import date, time
from uuid import uuid4

import pytest
from httpx import AsyncClient


@pytest.mark.asyncio
class TestConsultation:
    async def test_start_then_complete(self, client: AsyncClient, insert_appointment, patient, doctor, doctor_headers):
        appointment_id = await insert_appointment(patient, doctor)
        body = {"appointmentId": str(appointment_id)}

        started = await client.post("/api/v1/doctors/appointments/start", json=body, headers=doctor_headers)
        assert started.status_code == 200
        assert started.json()["message"] == "Consultation started"
        assert started.json()["appointment"]["status"] == "in-progress"

        completed = await client.post("/api/v1/doctors/appointments/complete", json=body, headers=doctor_headers)
        assert completed.status_code == 200
        assert completed.json()["message"] == "Consultation completed"
        assert completed.json()["appointment"]["status"] == "completed"

    async def test_start_confirmed_appointment(
        self, client: AsyncClient, insert_appointment, patient, doctor, doctor_headers
    ):
        appointment_id = await insert_appointment(patient, doctor, status="confirmed")

        response = await client.post(
            "/api/v1/doctors/appointments/start", json={"appointmentId": str(appointment_id)}, headers=doctor_headers
        )

        assert response.status_code == 200
        assert response.json()["appointment"]["status"] == "in-progress"

    async def test_complete_requires_in_progress(
        self, client: AsyncClient, insert_appointment, patient, doctor, doctor_headers
    ):
        appointment_id = await insert_appointment(patient, doctor)

        response = await client.post(
            "/api/v1/doctors/appointments/complete",
            json={"appointmentId": str(appointment_id)},
            headers=doctor_headers,
        )

        assert response.status_code == 409
        assert response.json()["error"] == "InvalidStateTransitionException"

    async def test_cannot_start_cancelled(self, client: AsyncClient, insert_appointment, patient, doctor, doctor_headers):
        appointment_id = await insert_appointment(patient, doctor, status="cancelled")

        response = await client.post(
            "/api/v1/doctors/appointments/start", json={"appointmentId": str(appointment_id)}, headers=doctor_headers
        )

        assert response.status_code == 409

    async def test_other_doctor_sees_not_found(
        self, client: AsyncClient, insert_appointment, patient, doctor, other_doctor_headers
    ):
        appointment_id = await insert_appointment(patient, doctor)

        response = await client.post(
            "/api/v1/doctors/appointments/start",
            json={"appointmentId": str(appointment_id)},
            headers=other_doctor_headers,
        )

        assert response.status_code == 404

    async def test_patient_cannot_start(self, client: AsyncClient, insert_appointment, patient, doctor, patient_headers):
        appointment_id = await insert_appointment(patient, doctor)

        response = await client.post(
            "/api/v1/doctors/appointments/start", json={"appointmentId": str(appointment_id)}, headers=patient_headers
        )

        assert response.status_code == 403

    async def test_unknown_appointment(self, client: AsyncClient, doctor_headers):
        response = await client.post(
            "/api/v1/doctors/appointments/start", json={"appointmentId": str(uuid4())}, headers=doctor_headers
        )

        assert response.status_code == 404


@pytest.mark.asyncio
class TestMyAppointments:
    async def test_only_own_schedule(
        self, client: AsyncClient, insert_appointment, patient, other_patient, doctor, other_doctor, doctor_headers
    ):
        await insert_appointment(patient, doctor)
        await insert_appointment(other_patient, other_doctor)

        response = await client.get("/api/v1/doctors/my-appointments", headers=doctor_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 1
        assert data["items"][0]["doctor_id"] == str(doctor["id"])
        assert data["items"][0]["patient_name"] == "Pat One"

    async def test_filters(self, client: AsyncClient, insert_appointment, patient, other_patient, doctor, doctor_headers):
        await insert_appointment(patient, doctor, appointment_date=date(2025, 3, 10))
        await insert_appointment(other_patient, doctor, appointment_date=date(2025, 3, 11), status="confirmed")

        by_date = await client.get("/api/v1/doctors/my-appointments?date=2025-03-11", headers=doctor_headers)
        by_status = await client.get("/api/v1/doctors/my-appointments?status=scheduled", headers=doctor_headers)

        assert by_date.json()["total"] == 1
        assert by_date.json()["items"][0]["status"] == "confirmed"
        assert by_status.json()["total"] == 1
        assert by_status.json()["items"][0]["appointment_date"] == "2025-03-10"

    async def test_upcoming_excludes_past(
        self, client: AsyncClient, insert_appointment, patient, other_patient, doctor, doctor_headers
    ):
        await insert_appointment(patient, doctor, appointment_date=date(2025, 2, 20))
        await insert_appointment(other_patient, doctor, appointment_date=date(2025, 3, 10))

        response = await client.get("/api/v1/doctors/my-appointments?upcoming=true", headers=doctor_headers)

        assert [item["appointment_date"] for item in response.json()["items"]] == ["2025-03-10"]

    async def test_patient_forbidden(self, client: AsyncClient, patient_headers):
        response = await client.get("/api/v1/doctors/my-appointments", headers=patient_headers)

        assert response.status_code == 403


@pytest.mark.asyncio
class TestMyPatients:
    async def test_lists_related_patients_once(
        self, client: AsyncClient, insert_appointment, patient, other_patient, doctor, other_doctor, doctor_headers
    ):
        await insert_appointment(patient, doctor, appointment_time=time(9, 0))
        await insert_appointment(patient, doctor, appointment_time=time(10, 0))
        await insert_appointment(other_patient, other_doctor)

        response = await client.get("/api/v1/doctors/my-patients", headers=doctor_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 1
        assert data["items"][0]["id"] == str(patient["id"])

    async def test_deleted_appointment_breaks_relationship(
        self, client: AsyncClient, insert_appointment, patient, doctor, doctor_headers, admin_headers
    ):
        appointment_id = await insert_appointment(patient, doctor)
        await client.delete(f"/api/v1/appointments/{appointment_id}", headers=admin_headers)

        response = await client.get("/api/v1/doctors/my-patients", headers=doctor_headers)

        assert response.json()["total"] == 0


@pytest.mark.asyncio
class TestPatientDetail:
    async def test_related_patient(
        self, client: AsyncClient, insert_appointment, patient, doctor, other_doctor, doctor_headers
    ):
        await insert_appointment(patient, doctor, appointment_time=time(9, 0))
        await insert_appointment(patient, other_doctor, appointment_time=time(11, 0))

        response = await client.get(f"/api/v1/doctors/patients/{patient['id']}", headers=doctor_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["patient"]["first_name"] == "Pat"
        # Only the shared history is exposed
        assert len(data["appointments"]) == 1
        assert data["appointments"][0]["doctor_id"] == str(doctor["id"])

    async def test_history_is_paginated(self, client: AsyncClient, insert_appointment, patient, doctor, doctor_headers):
        for hour in (9, 10, 11):
            await insert_appointment(patient, doctor, appointment_time=time(hour, 0))

        response = await client.get(
            f"/api/v1/doctors/patients/{patient['id']}",
            params={"page": 2, "page_size": 2},
            headers=doctor_headers,
        )

        data = response.json()
        assert data["total"] == 3
        assert data["page"] == 2
        assert data["page_size"] == 2
        # Newest first, so the earliest slot lands on the last page
        assert [item["appointment_time"] for item in data["appointments"]] == ["09:00:00"]

    async def test_unrelated_patient_is_not_found(self, client: AsyncClient, patient, doctor_headers):
        response = await client.get(f"/api/v1/doctors/patients/{patient['id']}", headers=doctor_headers)

        assert response.status_code == 404

    async def test_unknown_patient(self, client: AsyncClient, doctor_headers):
        response = await client.get(f"/api/v1/doctors/patients/{uuid4()}", headers=doctor_headers)

        assert response.status_code == 404
