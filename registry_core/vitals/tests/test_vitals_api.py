# registry_core/vitals/tests/test_vitals_api.py
import pytest

from registry_core.vitals.models import Vitals

pytestmark = pytest.mark.django_db


def _payload(patient, **overrides):
    data = {
        "patient_id": str(patient.id),
        "systolic_bp": 120,
        "diastolic_bp": 80,
        "heart_rate": 70,
        "oxygen_saturation": 98,
        "temperature": "36.8",
        "weight": "70.0",
        "height": "175.0",
    }
    data.update(overrides)
    return data


def test_nurse_records_vitals_with_bmi(client_for, patient):
    res = client_for("nurse").post("/api/v1/vitals/", _payload(patient), format="json")
    assert res.status_code == 201, res.data
    assert res.data["bmi"] == "22.9"
    assert res.data["patient_id"] == str(patient.id)


def test_bmi_is_null_without_height(api_client, patient):
    res = api_client.post("/api/v1/vitals/", _payload(patient, height=None), format="json")
    assert res.status_code == 201, res.data
    assert res.data["bmi"] is None


@pytest.mark.parametrize(
    "overrides",
    [
        {"systolic_bp": 400},
        {"heart_rate": 5},
        {"oxygen_saturation": 101},
        {"temperature": "50.0"},
        {"systolic_bp": 80, "diastolic_bp": 90},
    ],
)
def test_out_of_range_vitals_are_rejected(api_client, patient, overrides):
    res = api_client.post("/api/v1/vitals/", _payload(patient, **overrides), format="json")
    assert res.status_code == 400, res.data
    assert Vitals.objects.count() == 0


def test_doctor_cannot_record_vitals(client_for, patient):
    res = client_for("doctor").post("/api/v1/vitals/", _payload(patient), format="json")
    assert res.status_code == 403


def test_latest_returns_most_recent_reading(api_client, patient):
    api_client.post(
        "/api/v1/vitals/",
        _payload(patient, heart_rate=60, recorded_at="2024-01-01T08:00:00Z"),
        format="json",
    )
    api_client.post(
        "/api/v1/vitals/",
        _payload(patient, heart_rate=90, recorded_at="2024-02-01T08:00:00Z"),
        format="json",
    )

    res = api_client.get(f"/api/v1/vitals/latest/?patient={patient.id}")
    assert res.status_code == 200
    assert res.data["heart_rate"] == 90

    listing = api_client.get(f"/api/v1/vitals/?patient={patient.id}")
    assert [row["heart_rate"] for row in listing.data["results"]] == [90, 60]


def test_latest_without_readings_is_404(api_client, patient):
    res = api_client.get(f"/api/v1/vitals/latest/?patient={patient.id}")
    assert res.status_code == 404


def test_latest_requires_patient_param(api_client):
    res = api_client.get("/api/v1/vitals/latest/")
    assert res.status_code == 400
    assert "patient" in res.json()["error"]["details"]


def test_extreme_height_still_serializes_bmi(api_client, patient):
    res = api_client.post("/api/v1/vitals/", _payload(patient, weight="100.0", height="10.0"), format="json")
    assert res.status_code == 201, res.data
    assert res.data["bmi"] == "10000.0"

    latest = api_client.get(f"/api/v1/vitals/latest/?patient={patient.id}")
    assert latest.status_code == 200
    assert latest.data["bmi"] == "10000.0"
