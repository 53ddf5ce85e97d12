# registry_core/pharmacy/tests/test_prescriptions.py
import pytest

from registry_core.consultations.models import Consultation
from registry_core.notifications.models import Notification

pytestmark = pytest.mark.django_db

ASPIRIN = {"medication_name": "Aspirin", "dosage": "75mg", "frequency": "OD", "duration": "30 days", "quantity": 30}


@pytest.fixture
def doc_client(client_for, doctor):
    return client_for(doctor)


def _prescribe(client, patient, items, **extra):
    return client.post(
        "/api/v1/prescriptions/",
        {"patient_id": str(patient.id), "items": items, **extra},
        format="json",
    )


def test_blank_rows_are_dropped(doc_client, doctor, patient):
    blank = {"medication_name": "", "dosage": ""}
    res = _prescribe(doc_client, patient, [ASPIRIN, blank, {}])
    assert res.status_code == 201, res.data
    assert res.data["status"] == "pending"
    assert res.data["prescribed_by_id"] == doctor.id
    assert [i["medication_name"] for i in res.data["items"]] == ["Aspirin"]


def test_all_blank_is_rejected(doc_client, patient):
    res = _prescribe(doc_client, patient, [{"medication_name": ""}])
    assert res.status_code == 400
    assert res.data["error"]["code"] == "validation_error"


def test_row_without_dosage_is_rejected(doc_client, patient):
    res = _prescribe(doc_client, patient, [{"medication_name": "Atorvastatin"}])
    assert res.status_code == 400


def test_pharmacists_are_notified(doc_client, pharmacist, patient):
    res = _prescribe(doc_client, patient, [ASPIRIN])
    notif = Notification.objects.get(user=pharmacist)
    assert notif.title == "New Prescription"
    assert "Amina Otieno" in notif.message
    assert str(notif.related_entity_id) == res.data["id"]


def test_prescribing_from_consultation_completes_it(doc_client, doctor, patient):
    c = Consultation.objects.create(patient=patient, doctor=doctor, status="referred_to_prescription")

    res = _prescribe(doc_client, patient, [ASPIRIN], consultation_id=str(c.id))
    assert res.status_code == 201
    assert res.data["consultation_id"] == str(c.id)

    c.refresh_from_db()
    assert c.status == "completed"
    assert c.requires_prescription is True


def test_consultation_of_other_patient_is_rejected(doc_client, doctor, patient):
    from datetime import date

    from registry_core.patients.models import Patient

    other = Patient.objects.create(
        patient_number="PT-000050", first_name="B", last_name="C", date_of_birth=date(1970, 1, 1), gender="male"
    )
    c = Consultation.objects.create(patient=other, doctor=doctor)
    res = _prescribe(doc_client, patient, [ASPIRIN], consultation_id=str(c.id))
    assert res.status_code == 400


def test_dispense_once(doc_client, client_for, pharmacist, patient):
    rx = _prescribe(doc_client, patient, [ASPIRIN]).data
    ph = client_for(pharmacist)

    res = ph.post(f"/api/v1/prescriptions/{rx['id']}/dispense/")
    assert res.status_code == 200
    assert res.data["status"] == "dispensed"
    assert res.data["dispensed_by_id"] == pharmacist.id
    assert res.data["dispensed_at"] is not None

    again = ph.post(f"/api/v1/prescriptions/{rx['id']}/dispense/")
    assert again.status_code == 409
    assert again.data["error"]["code"] == "conflict"

    history = ph.get("/api/v1/prescriptions/history/")
    assert [row["id"] for row in history.data["results"]] == [rx["id"]]


def test_doctor_cannot_dispense(doc_client, patient):
    rx = _prescribe(doc_client, patient, [ASPIRIN]).data
    res = doc_client.post(f"/api/v1/prescriptions/{rx['id']}/dispense/")
    assert res.status_code == 403


def test_cancelled_cannot_be_dispensed(doc_client, client_for, patient):
    rx = _prescribe(doc_client, patient, [ASPIRIN]).data
    assert doc_client.post(f"/api/v1/prescriptions/{rx['id']}/cancel/").data["status"] == "cancelled"

    res = client_for("pharmacist").post(f"/api/v1/prescriptions/{rx['id']}/dispense/")
    assert res.status_code == 409


def test_idempotent_create(doc_client, patient):
    headers = {"HTTP_IDEMPOTENCY_KEY": "rx-1"}
    first = doc_client.post(
        "/api/v1/prescriptions/", {"patient_id": str(patient.id), "items": [ASPIRIN]}, format="json", **headers
    )
    second = doc_client.post(
        "/api/v1/prescriptions/", {"patient_id": str(patient.id), "items": [ASPIRIN]}, format="json", **headers
    )
    assert first.status_code == second.status_code == 201
    assert first.data["id"] == second.data["id"]
