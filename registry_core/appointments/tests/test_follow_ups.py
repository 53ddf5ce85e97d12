# registry_core/appointments/tests/test_follow_ups.py
from datetime import timedelta

import pytest
from django.utils import timezone

from registry_core.appointments.models import FollowUp

pytestmark = pytest.mark.django_db


def test_schedule_and_complete_follow_up(client_for, patient, doctor):
    c = client_for("nurse")
    res = c.post(
        "/api/v1/follow-ups/",
        {
            "patient_id": str(patient.id),
            "doctor_id": doctor.id,
            "scheduled_date": "2030-02-01",
            "reason": "Post-op wound check",
        },
        format="json",
    )
    assert res.status_code == 201, res.data
    fu_id = res.data["id"]

    done = c.post(f"/api/v1/follow-ups/{fu_id}/complete/", {"notes": "Healing well"}, format="json")
    assert done.status_code == 200
    assert done.data["status"] == "completed"
    assert done.data["completed_at"] is not None
    assert done.data["notes"] == "Healing well"

    again = c.post(f"/api/v1/follow-ups/{fu_id}/cancel/")
    assert again.status_code == 409


def test_list_exposes_overdue_and_due_today(api_client, patient):
    today = timezone.localdate()
    FollowUp.objects.create(patient=patient, scheduled_date=today - timedelta(days=3), reason="late")
    FollowUp.objects.create(patient=patient, scheduled_date=today, reason="today")
    FollowUp.objects.create(patient=patient, scheduled_date=today + timedelta(days=3), reason="later")
    FollowUp.objects.create(
        patient=patient, scheduled_date=today - timedelta(days=1), reason="done", status="completed"
    )

    res = api_client.get("/api/v1/follow-ups/?status=scheduled")
    assert res.status_code == 200
    assert res.data["count"] == 3
    assert res.data["overdue"] == 1
    assert res.data["due_today"] == 1
    assert [f["reason"] for f in res.data["results"]] == ["late", "today", "later"]


def test_follow_up_doctor_must_be_a_doctor(api_client, patient, nurse):
    res = api_client.post(
        "/api/v1/follow-ups/",
        {"patient_id": str(patient.id), "doctor_id": nurse.id, "scheduled_date": "2030-02-01", "reason": "x"},
        format="json",
    )
    assert res.status_code == 400


def test_pharmacist_cannot_schedule_follow_ups(client_for, patient):
    res = client_for("pharmacist").post(
        "/api/v1/follow-ups/",
        {"patient_id": str(patient.id), "scheduled_date": "2030-02-01", "reason": "x"},
        format="json",
    )
    assert res.status_code == 403
