# registry_core/lab/tests/test_lab_workflow.py
import pytest

from registry_core.notifications.models import Notification

pytestmark = pytest.mark.django_db


def _order(client, patient, **overrides):
    payload = {"patient_id": str(patient.id), "test_type": "blood", "test_name": "Lipid Panel"}
    payload.update(overrides)
    res = client.post("/api/v1/lab-tests/", payload, format="json")
    assert res.status_code == 201, res.data
    return res.data


def test_order_notifies_lab_technicians(client_for, lab_tech, doctor, patient):
    test = _order(client_for(doctor), patient, priority="stat", test_name="Troponin I")
    assert test["status"] == "pending"
    assert test["ordered_by_id"] == doctor.id

    notif = Notification.objects.get(user=lab_tech)
    assert notif.title == "Urgent Lab Order: Troponin I"
    assert notif.notification_type == "warning"
    assert notif.message == "Lab test ordered for Amina Otieno. Priority: STAT"


def test_routine_order_is_info(client_for, lab_tech, patient):
    _order(client_for("nurse"), patient)
    notif = Notification.objects.get(user=lab_tech)
    assert notif.title == "New Lab Order: Lipid Panel"
    assert notif.notification_type == "info"


def test_queue_is_sorted_by_priority_then_age(api_client, patient):
    _order(api_client, patient, test_name="A", priority="routine")
    _order(api_client, patient, test_name="B", priority="stat")
    _order(api_client, patient, test_name="C", priority="urgent")
    _order(api_client, patient, test_name="D", priority="stat")

    res = api_client.get("/api/v1/lab-tests/")
    assert res.status_code == 200
    assert [t["test_name"] for t in res.data["results"]] == ["B", "D", "C", "A"]


def test_results_complete_the_test_and_notify_orderer(client_for, doctor, patient):
    test = _order(client_for(doctor), patient)
    tech = client_for("lab_technician")

    start = tech.post(f"/api/v1/lab-tests/{test['id']}/start/", {}, format="json")
    assert start.status_code == 200
    assert start.data["status"] == "in_progress"

    res = tech.post(
        f"/api/v1/lab-tests/{test['id']}/results/",
        {
            "results": [
                {"parameter_name": "LDL", "value": "4.9", "unit": "mmol/L", "reference_range": "<3.0", "is_abnormal": True},
                {"parameter_name": "", "value": ""},
            ]
        },
        format="json",
    )
    assert res.status_code == 200, res.data
    assert res.data["status"] == "completed"
    assert res.data["completed_at"] is not None
    assert [r["parameter_name"] for r in res.data["results"]] == ["LDL"]

    notif = Notification.objects.get(user=doctor)
    assert notif.title == "Abnormal Lab Results: Lipid Panel"
    assert notif.notification_type == "warning"


def test_results_can_be_entered_from_pending(api_client, patient):
    test = _order(api_client, patient)
    res = api_client.post(
        f"/api/v1/lab-tests/{test['id']}/results/",
        {"results": [{"parameter_name": "HbA1c", "value": "5.6"}]},
        format="json",
    )
    assert res.status_code == 200, res.data
    assert res.data["status"] == "completed"


def test_all_blank_results_are_rejected(api_client, patient):
    test = _order(api_client, patient)
    res = api_client.post(
        f"/api/v1/lab-tests/{test['id']}/results/",
        {"results": [{"parameter_name": " ", "value": ""}]},
        format="json",
    )
    assert res.status_code == 400
    assert api_client.get(f"/api/v1/lab-tests/{test['id']}/").data["status"] == "pending"


def test_completed_test_cannot_be_cancelled(api_client, patient):
    test = _order(api_client, patient)
    api_client.post(
        f"/api/v1/lab-tests/{test['id']}/results/",
        {"results": [{"parameter_name": "Na", "value": "140"}]},
        format="json",
    )

    res = api_client.post(f"/api/v1/lab-tests/{test['id']}/cancel/", {"reason": "duplicate"}, format="json")
    assert res.status_code == 409
    assert res.json()["error"]["code"] == "conflict"


def test_cancel_appends_reason(api_client, patient):
    test = _order(api_client, patient, notes="fasting")
    res = api_client.post(f"/api/v1/lab-tests/{test['id']}/cancel/", {"reason": "duplicate order"}, format="json")
    assert res.status_code == 200
    assert res.data["status"] == "cancelled"
    assert res.data["notes"] == "fasting\nCancelled: duplicate order"


def test_nurse_cannot_enter_results(client_for, patient, api_client):
    test = _order(api_client, patient)
    res = client_for("nurse").post(
        f"/api/v1/lab-tests/{test['id']}/results/",
        {"results": [{"parameter_name": "Na", "value": "140"}]},
        format="json",
    )
    assert res.status_code == 403


def test_mine_lists_only_callers_orders(client_for, doctor, patient, api_client):
    _order(api_client, patient, test_name="By admin")
    _order(client_for(doctor), patient, test_name="By doctor")

    res = client_for(doctor).get("/api/v1/lab-tests/mine/")
    assert res.status_code == 200
    assert [t["test_name"] for t in res.data["results"]] == ["By doctor"]
