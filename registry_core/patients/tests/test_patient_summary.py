# registry_core/patients/tests/test_patient_summary.py
import pytest

pytestmark = pytest.mark.django_db


def test_summary_collects_recent_clinical_rows(api_client, patient):
    v = api_client.post(
        "/api/v1/vitals/",
        {"patient_id": str(patient.id), "systolic_bp": 130, "diastolic_bp": 85, "heart_rate": 72},
        format="json",
    )
    assert v.status_code == 201, v.data

    lab = api_client.post(
        "/api/v1/lab-tests/",
        {"patient_id": str(patient.id), "test_type": "blood", "test_name": "Troponin", "priority": "urgent"},
        format="json",
    )
    assert lab.status_code == 201, lab.data

    res = api_client.get(f"/api/v1/patients/{patient.id}/summary/")
    assert res.status_code == 200, res.data
    body = res.data
    assert body["patient"]["patient_number"] == "PT-000001"
    assert [row["systolic_bp"] for row in body["vitals"]] == [130]
    assert body["lab_tests"][0]["test_name"] == "Troponin"
    for key in ("prescriptions", "surgeries", "appointments", "consultations", "follow_ups", "icu_admissions", "ward_admissions"):
        assert body[key] == []
