# registry_core/surgery/tests/test_surgery_workflow.py
from datetime import timedelta

import pytest
from django.utils import timezone

from registry_core.consultations.models import Consultation
from registry_core.lab.models import LabTest
from registry_core.surgery.checklists import CHECKLISTS, SIGN_IN, SIGN_OUT, TIME_OUT
from registry_core.surgery.models import Surgery
from registry_core.vitals.models import Vitals

pytestmark = pytest.mark.django_db

ALL_IN = [True] * len(CHECKLISTS[SIGN_IN])
ALL_TIME_OUT = [True] * len(CHECKLISTS[TIME_OUT])
ALL_OUT = [True] * len(CHECKLISTS[SIGN_OUT])


@pytest.fixture
def doc_client(client_for, doctor):
    return client_for(doctor)


def _schedule(client, patient, **extra):
    res = client.post(
        "/api/v1/surgeries/",
        {
            "patient_id": str(patient.id),
            "surgery_type": "cardiac",
            "surgery_name": "CABG x3",
            "scheduled_date": "2030-01-08",
            "operating_room": "OR-2",
            **extra,
        },
        format="json",
    )
    assert res.status_code == 201, res.data
    return res.data


def _pre_op(client, surgery_id, sign_in=None, time_out=None):
    return client.post(
        f"/api/v1/surgeries/{surgery_id}/pre-op/",
        {"sign_in": sign_in or ALL_IN, "time_out": time_out or ALL_TIME_OUT},
        format="json",
    )


def test_schedule_defaults_surgeon_to_actor(doc_client, doctor, patient):
    s = _schedule(doc_client, patient)
    assert s["status"] == "scheduled"
    assert s["surgeon_id"] == doctor.id
    assert s["surgeon_name"] == "Jane Kamau"
    assert s["duration_minutes"] == 120


def test_scheduling_from_referral_completes_consultation(doc_client, doctor, patient):
    c = Consultation.objects.create(patient=patient, doctor=doctor, status="referred_to_surgery")

    s = _schedule(doc_client, patient, consultation_id=str(c.id))
    assert s["consultation_id"] == str(c.id)

    c.refresh_from_db()
    assert c.status == "completed"
    assert c.requires_surgery is True


def test_consent_requires_risks_explained(doc_client, patient):
    s = _schedule(doc_client, patient)
    url = f"/api/v1/surgeries/{s['id']}/consent/"

    res = doc_client.post(url, {"consent_type": "surgical", "patient_signature": "A. Otieno"}, format="json")
    assert res.status_code == 400
    assert res.data["error"]["code"] == "validation_error"

    res = doc_client.post(
        url,
        {"consent_type": "surgical", "patient_signature": "A. Otieno", "risks_explained": True},
        format="json",
    )
    assert res.status_code == 201
    assert res.data["surgery_id"] == s["id"]
    assert res.data["patient_id"] == str(patient.id)

    detail = doc_client.get(f"/api/v1/surgeries/{s['id']}/").data
    assert len(detail["consents"]) == 1


def test_start_blocked_until_checklist_done(doc_client, patient):
    s = _schedule(doc_client, patient)
    res = doc_client.post(f"/api/v1/surgeries/{s['id']}/start/")
    assert res.status_code == 409
    assert res.data["error"]["code"] == "conflict"


def test_unconfirmed_checklist_item_is_rejected(doc_client, patient):
    s = _schedule(doc_client, patient)
    sign_in = list(ALL_IN)
    sign_in[2] = False

    res = _pre_op(doc_client, s["id"], sign_in=sign_in)
    assert res.status_code == 400
    assert "Anesthesia safety check" in res.data["error"]["message"]

    assert Surgery.objects.get(id=s["id"]).status == "scheduled"


def test_short_checklist_is_rejected(doc_client, patient):
    s = _schedule(doc_client, patient)
    res = _pre_op(doc_client, s["id"], time_out=[True, True])
    assert res.status_code == 400


def test_full_flow_to_post_op_care(doc_client, patient):
    s = _schedule(doc_client, patient)

    res = _pre_op(doc_client, s["id"])
    assert res.status_code == 200
    assert res.data["status"] == "pre_op_complete"
    assert res.data["who_checklist_completed"] is True
    assert set(res.data["who_checklist"]) == {"sign_in", "time_out"}

    res = doc_client.post(f"/api/v1/surgeries/{s['id']}/start/")
    assert res.data["status"] == "in_progress"

    res = doc_client.post(
        f"/api/v1/surgeries/{s['id']}/complete/",
        {"intra_op_notes": "Uneventful", "complications": ""},
        format="json",
    )
    assert res.data["status"] == "surgery_complete"
    assert res.data["intra_op_notes"] == "Uneventful"

    res = doc_client.post(
        f"/api/v1/surgeries/{s['id']}/sign-out/",
        {"sign_out": ALL_OUT, "post_op_notes": "Stable"},
        format="json",
    )
    assert res.status_code == 200
    assert res.data["status"] == "post_op_care"
    assert res.data["post_op_notes"] == "Stable"
    assert "sign_out" in res.data["who_checklist"]


def test_sign_out_out_of_order_is_conflict(doc_client, patient):
    s = _schedule(doc_client, patient)
    res = doc_client.post(f"/api/v1/surgeries/{s['id']}/sign-out/", {"sign_out": ALL_OUT}, format="json")
    assert res.status_code == 409


def test_cancel_then_edit_is_conflict(doc_client, patient):
    s = _schedule(doc_client, patient)
    res = doc_client.post(f"/api/v1/surgeries/{s['id']}/cancel/")
    assert res.data["status"] == "cancelled"

    res = doc_client.patch(f"/api/v1/surgeries/{s['id']}/", {"post_op_notes": "x"}, format="json")
    assert res.status_code == 409


def test_checklists_lists_items_per_phase(doc_client):
    res = doc_client.get("/api/v1/surgeries/checklists/")
    assert res.status_code == 200
    assert len(res.data["sign_in"]) == 7
    assert len(res.data["time_out"]) == 7
    assert len(res.data["sign_out"]) == 5


def test_pharmacist_cannot_see_surgeries(client_for):
    res = client_for("pharmacist").get("/api/v1/surgeries/")
    assert res.status_code == 403


def _verified(res) -> dict:
    return {item["key"]: item["verified"] for item in res.json()["items"]}


def test_verification_flags_missing_preop_items(doc_client, patient):
    s = _schedule(doc_client, patient)
    Vitals.objects.create(
        patient=patient, systolic_bp=130, diastolic_bp=85, heart_rate=72, recorded_at=timezone.now() - timedelta(days=2)
    )

    res = doc_client.get(f"/api/v1/surgeries/{s['id']}/verification/")
    assert res.status_code == 200
    body = res.json()
    assert body["surgery_name"] == "CABG x3"
    assert _verified(res) == {
        "identity": True,
        "consent": False,
        "recent_vitals": False,
        "preop_labs": False,
        "allergies": True,
    }
    assert body["items"][0]["detail"] == "Amina Otieno (PT-000001)"
    assert body["all_verified"] is False


def test_verification_passes_with_consent_vitals_and_labs(doc_client, patient):
    patient.consent_treatment = True
    patient.allergies = ["Penicillin"]
    patient.save()
    Vitals.objects.create(patient=patient, systolic_bp=128, diastolic_bp=82, heart_rate=70)
    LabTest.objects.create(patient=patient, test_type="blood", test_name="Full blood count", status="completed")
    s = _schedule(doc_client, patient)

    res = doc_client.get(f"/api/v1/surgeries/{s['id']}/verification/")
    body = res.json()
    assert body["all_verified"] is True
    vitals = next(i for i in body["items"] if i["key"] == "recent_vitals")
    assert vitals["detail"] == "BP: 128/82, HR: 70"
    allergies = next(i for i in body["items"] if i["key"] == "allergies")
    assert allergies["warning"] is True
    assert allergies["detail"] == "1 documented"
    assert body["allergies"] == ["Penicillin"]


def test_pharmacist_cannot_see_verification(client_for, doc_client, patient):
    s = _schedule(doc_client, patient)
    assert client_for("pharmacist").get(f"/api/v1/surgeries/{s['id']}/verification/").status_code == 403
