"""
API integration tests for vaccination drives.
"""

import uuid
from datetime import date, timedelta

from vaccination_portal.models.enums import DriveStatus, VaccinationStatus


def drive_payload(**overrides):
    data = {
        "vaccine_name": "Hepatitis B",
        "date": (date.today() + timedelta(days=20)).isoformat(),
        "available_doses": 50,
        "applicable_classes": ["5", "6"],
    }
    data.update(overrides)
    return data


# ============================================================
# CRUD
# ============================================================

class TestCreateDrive:
    def test_create(self, client):
        resp = client.post("/api/drives", json=drive_payload())

        assert resp.status_code == 201
        data = resp.json()
        assert data["status"] == "Scheduled"
        assert data["available_doses"] == 50
        assert data["created_by"] == "1"

    def test_create_without_classes(self, client):
        resp = client.post("/api/drives", json=drive_payload(applicable_classes=[]))
        assert resp.status_code == 422

    def test_create_without_doses(self, client):
        resp = client.post("/api/drives", json=drive_payload(available_doses=0))
        assert resp.status_code == 422


class TestGetUpdateDrive:
    def test_get_unknown(self, client):
        resp = client.get(f"/api/drives/{uuid.uuid4()}")

        assert resp.status_code == 404
        assert resp.json()["detail"] == "Vaccination drive not found."

    def test_update(self, client, make_drive):
        drive = make_drive(doses=5)

        resp = client.put(f"/api/drives/{drive.id}", json={"available_doses": 30})

        assert resp.status_code == 200
        assert resp.json()["available_doses"] == 30

    def test_update_completed_drive(self, client, make_drive):
        drive = make_drive(status=DriveStatus.COMPLETED)

        resp = client.put(f"/api/drives/{drive.id}", json={"vaccine_name": "MMR"})

        assert resp.status_code == 400
        assert "completed" in resp.json()["detail"]


class TestListDrives:
    def test_list_upcoming(self, client, make_drive):
        make_drive(vaccine_name="Soon", days_ahead=3)
        make_drive(vaccine_name="Later", days_ahead=60)

        resp = client.get("/api/drives", params={"upcoming": "true"})

        assert resp.status_code == 200
        assert [d["vaccine_name"] for d in resp.json()["items"]] == ["Soon"]

    def test_list_by_status(self, client, make_drive):
        make_drive(vaccine_name="Open")
        make_drive(vaccine_name="Done", status=DriveStatus.COMPLETED)

        resp = client.get("/api/drives", params={"status": "Completed"})

        assert [d["vaccine_name"] for d in resp.json()["items"]] == ["Done"]

    def test_upcoming_overrides_status(self, client, make_drive):
        make_drive(vaccine_name="Soon", days_ahead=3)

        resp = client.get("/api/drives", params={"status": "Completed", "upcoming": "true"})

        assert [d["vaccine_name"] for d in resp.json()["items"]] == ["Soon"]

    def test_list_unknown_status(self, client):
        resp = client.get("/api/drives", params={"status": "Paused"})
        assert resp.status_code == 422


# ============================================================
# Transitions
# ============================================================

class TestTransitions:
    def test_complete(self, client, make_drive, make_student, add_record):
        drive = make_drive()
        add_record(make_student(), drive, status=VaccinationStatus.SCHEDULED)

        resp = client.patch(f"/api/drives/{drive.id}/complete")

        assert resp.status_code == 200
        data = resp.json()
        assert data["drive"]["status"] == "Completed"
        assert data["missed_records"] == 1

    def test_cancel(self, client, make_drive):
        drive = make_drive()

        resp = client.patch(f"/api/drives/{drive.id}/cancel")

        assert resp.status_code == 200
        assert resp.json()["drive"]["status"] == "Cancelled"

    def test_cancel_completed_drive(self, client, make_drive):
        drive = make_drive(status=DriveStatus.COMPLETED)

        resp = client.patch(f"/api/drives/{drive.id}/cancel")

        assert resp.status_code == 400
        assert resp.json()["detail"] == "Cannot cancel a completed vaccination drive."

    def test_complete_twice(self, client, make_drive):
        drive = make_drive()
        client.patch(f"/api/drives/{drive.id}/complete")

        resp = client.patch(f"/api/drives/{drive.id}/complete")

        assert resp.status_code == 400


# ============================================================
# Deletion
# ============================================================

class TestDeleteDrive:
    def test_delete(self, client, make_drive):
        drive = make_drive(days_ahead=5)

        resp = client.delete(f"/api/drives/{drive.id}")

        assert resp.status_code == 204
        assert client.get(f"/api/drives/{drive.id}").status_code == 404

    def test_delete_past_drive(self, client, make_drive):
        drive = make_drive(days_ahead=-2)

        resp = client.delete(f"/api/drives/{drive.id}")

        assert resp.status_code == 400
        assert resp.json()["detail"] == "Cannot delete past vaccination drives."

    def test_delete_drive_with_vaccinations(self, client, make_drive, make_student, add_record):
        drive = make_drive()
        add_record(make_student(), drive)

        resp = client.delete(f"/api/drives/{drive.id}")

        assert resp.status_code == 409
        assert resp.json()["detail"] == "Cannot delete drive as 1 students are already vaccinated."


# ============================================================
# Enrolled students
# ============================================================

class TestDriveStudents:
    def test_schedule_then_list(self, client, make_drive, make_student):
        drive = make_drive(classes=("5",))
        make_student(name="Alice", class_name="5")
        make_student(name="Bob", class_name="7")

        scheduled = client.post(f"/api/drives/{drive.id}/schedule")
        listed = client.get(f"/api/drives/{drive.id}/students", params={"status": "Scheduled"})

        assert scheduled.status_code == 200
        assert scheduled.json()["scheduled"] == 1
        assert [s["name"] for s in listed.json()["items"]] == ["Alice"]

    def test_schedule_cancelled_drive(self, client, make_drive):
        drive = make_drive(status=DriveStatus.CANCELLED)

        resp = client.post(f"/api/drives/{drive.id}/schedule")

        assert resp.status_code == 400
