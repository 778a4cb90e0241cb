from datetime import timedelta

import pytest

from tests.conftest import future


@pytest.fixture
def ward(register_hospital, add_hospital_doctor, register_patient):
    hospital = register_hospital()
    doctor = add_hospital_doctor(hospital["headers"])
    patient = register_patient()
    return hospital, doctor, patient


def book(client, patient, doctor_id, when, time="10:00 AM", **extra):
    payload = {"hospital_doctor_id": doctor_id, "date": when.isoformat(), "time": time}
    payload.update(extra)
    return client.post("/api/v1/hospital-appointments", json=payload, headers=patient["headers"])


class TestHospitalAppointments:

    def test_book_with_hospital_doctor(self, client, ward):
        hospital, doctor, patient = ward

        response = book(client, patient, doctor["id"], future(), notes="Routine check")
        assert response.status_code == 201
        data = response.json()["data"]
        assert data["status"] == "pending"
        assert data["hospital_id"] == hospital["id"]
        assert data["hospital_doctor_id"] == doctor["id"]
        assert data["time"] == "10:00 AM"

    def test_display_time_does_not_affect_conflicts(self, client, ward):
        _, doctor, patient = ward
        when = future()
        book(client, patient, doctor["id"], when, time="10:00 AM")

        response = book(client, patient, doctor["id"], when + timedelta(minutes=25), time="4:00 PM")
        assert response.status_code == 409

    def test_conflicts_are_per_doctor(self, client, ward, add_hospital_doctor):
        hospital, doctor, patient = ward
        colleague = add_hospital_doctor(hospital["headers"], email="colleague@example.com")
        when = future()

        assert book(client, patient, doctor["id"], when).status_code == 201
        assert book(client, patient, colleague["id"], when).status_code == 201

    def test_retired_doctor_cannot_be_booked(self, client, ward):
        hospital, doctor, patient = ward
        client.patch(
            f"/api/v1/hospital-doctors/{doctor['id']}",
            json={"is_active": False},
            headers=hospital["headers"]
        )

        response = book(client, patient, doctor["id"], future())
        assert response.status_code == 404

    def test_hospital_updates_status(self, client, ward):
        hospital, doctor, patient = ward
        appointment = book(client, patient, doctor["id"], future()).json()["data"]

        response = client.patch(
            f"/api/v1/hospital-appointments/{appointment['id']}/status",
            json={"status": "confirmed"},
            headers=hospital["headers"]
        )
        assert response.status_code == 200
        assert response.json()["data"]["status"] == "confirmed"

        response = client.patch(
            f"/api/v1/hospital-appointments/{appointment['id']}/status",
            json={"status": "completed"},
            headers=hospital["headers"]
        )
        assert response.json()["data"]["status"] == "completed"

    def test_invalid_status_value(self, client, ward):
        hospital, doctor, patient = ward
        appointment = book(client, patient, doctor["id"], future()).json()["data"]

        response = client.patch(
            f"/api/v1/hospital-appointments/{appointment['id']}/status",
            json={"status": "archived"},
            headers=hospital["headers"]
        )
        assert response.status_code == 400

    def test_other_hospital_cannot_update(self, client, ward, register_hospital):
        _, doctor, patient = ward
        rival = register_hospital(email="rival@example.com", name="Rival Hospital")
        appointment = book(client, patient, doctor["id"], future()).json()["data"]

        response = client.patch(
            f"/api/v1/hospital-appointments/{appointment['id']}/status",
            json={"status": "confirmed"},
            headers=rival["headers"]
        )
        assert response.status_code == 404

    def test_patient_cancels_then_cannot_complete(self, client, ward):
        hospital, doctor, patient = ward
        appointment = book(client, patient, doctor["id"], future()).json()["data"]

        response = client.patch(
            f"/api/v1/hospital-appointments/{appointment['id']}/cancel",
            headers=patient["headers"]
        )
        assert response.status_code == 200
        assert response.json()["data"]["status"] == "cancelled"

        response = client.patch(
            f"/api/v1/hospital-appointments/{appointment['id']}/status",
            json={"status": "completed"},
            headers=hospital["headers"]
        )
        assert response.status_code == 409

    def test_cancel_after_completion_is_rejected(self, client, ward):
        hospital, doctor, patient = ward
        appointment = book(client, patient, doctor["id"], future()).json()["data"]
        for status in ("confirmed", "completed"):
            client.patch(
                f"/api/v1/hospital-appointments/{appointment['id']}/status",
                json={"status": status},
                headers=hospital["headers"]
            )

        response = client.patch(
            f"/api/v1/hospital-appointments/{appointment['id']}/cancel",
            headers=patient["headers"]
        )
        assert response.status_code == 409

    def test_hospital_reschedules(self, client, ward):
        hospital, doctor, patient = ward
        when = future()
        first = book(client, patient, doctor["id"], when).json()["data"]
        second = book(client, patient, doctor["id"], when + timedelta(hours=1)).json()["data"]

        response = client.patch(
            f"/api/v1/hospital-appointments/{second['id']}/reschedule",
            json={"date": (when + timedelta(minutes=15)).isoformat()},
            headers=hospital["headers"]
        )
        assert response.status_code == 409

        response = client.patch(
            f"/api/v1/hospital-appointments/{first['id']}/reschedule",
            json={"date": (when + timedelta(days=1)).isoformat()},
            headers=hospital["headers"]
        )
        assert response.status_code == 200

    def test_listings(self, client, ward):
        hospital, doctor, patient = ward
        book(client, patient, doctor["id"], future())

        response = client.get("/api/v1/hospital-appointments/patient", headers=patient["headers"])
        assert response.json()["count"] == 1

        response = client.get(
            f"/api/v1/hospital-appointments/doctor/{doctor['id']}",
            headers=hospital["headers"]
        )
        assert response.json()["count"] == 1

    def test_doctor_schedule_of_other_hospital(self, client, ward, register_hospital):
        _, doctor, _ = ward
        rival = register_hospital(email="rival@example.com", name="Rival Hospital")

        response = client.get(
            f"/api/v1/hospital-appointments/doctor/{doctor['id']}",
            headers=rival["headers"]
        )
        assert response.status_code == 404

    def test_get_single_appointment(self, client, ward, register_patient):
        hospital, doctor, patient = ward
        appointment = book(client, patient, doctor["id"], future()).json()["data"]
        url = f"/api/v1/hospital-appointments/{appointment['id']}"

        assert client.get(url, headers=patient["headers"]).status_code == 200
        assert client.get(url, headers=hospital["headers"]).status_code == 200

        stranger = register_patient(email="stranger@example.com")
        assert client.get(url, headers=stranger["headers"]).status_code == 404
