# registry_core/inpatient/tests/test_icu_and_ward.py
from datetime import date

import pytest
from django.db import IntegrityError, transaction

from registry_core.common.transitions import StateConflict
from registry_core.inpatient import services
from registry_core.inpatient.models import IcuAdmission, WardAdmission
from registry_core.patients.models import Patient
from registry_core.surgery.models import Surgery

pytestmark = pytest.mark.django_db


@pytest.fixture
def nurse_client(client_for, nurse):
    return client_for(nurse)


@pytest.fixture
def second_patient():
    return Patient.objects.create(
        patient_number="PT-000002", first_name="Brian", last_name="Mwangi", date_of_birth=date(1975, 3, 2), gender="male"
    )


@pytest.fixture
def post_op_surgery(patient, doctor):
    return Surgery.objects.create(
        patient=patient,
        surgeon=doctor,
        surgery_type="cardiac",
        surgery_name="Mitral valve repair",
        scheduled_date=date(2030, 1, 8),
        status="post_op_care",
    )


def _admit_icu(client, patient, bed="ICU-1"):
    return client.post(
        "/api/v1/icu-admissions/",
        {"patient_id": str(patient.id), "bed_number": bed, "admission_reason": "Arrhythmia"},
        format="json",
    )


def test_direct_icu_admission(nurse_client, nurse, patient):
    res = _admit_icu(nurse_client, patient)
    assert res.status_code == 201, res.data
    assert res.data["status"] == "admitted"
    assert res.data["bed_number"] == "ICU-1"
    assert res.data["admitted_by_id"] == nurse.id

    board = nurse_client.get("/api/v1/icu-admissions/beds/").data
    assert "ICU-1" in board["beds"]
    assert "ICU-1" not in board["available"]
    assert len(board["available"]) == len(board["beds"]) - 1


def test_occupied_bed_is_conflict(nurse_client, patient, second_patient):
    assert _admit_icu(nurse_client, patient).status_code == 201
    res = _admit_icu(nurse_client, second_patient)
    assert res.status_code == 409
    assert res.data["error"]["code"] == "conflict"


def test_unknown_bed_is_rejected(nurse_client, patient):
    res = _admit_icu(nurse_client, patient, bed="ICU-99")
    assert res.status_code == 400


def test_patient_cannot_hold_two_icu_beds(nurse_client, patient):
    assert _admit_icu(nurse_client, patient).status_code == 201
    assert _admit_icu(nurse_client, patient, bed="ICU-2").status_code == 409


def test_post_op_admission_completes_surgery(client_for, doctor, post_op_surgery):
    c = client_for(doctor)
    res = c.post(f"/api/v1/surgeries/{post_op_surgery.id}/admit-icu/", {"bed_number": "CCU-1"}, format="json")
    assert res.status_code == 201, res.data
    assert res.data["surgery_id"] == str(post_op_surgery.id)
    assert res.data["admission_reason"] == "Post-surgery recovery: Mitral valve repair"

    post_op_surgery.refresh_from_db()
    assert post_op_surgery.status == "completed"

    again = c.post(f"/api/v1/surgeries/{post_op_surgery.id}/admit-ward/", {}, format="json")
    assert again.status_code == 409


def test_surgery_not_in_post_op_cannot_be_admitted(client_for, doctor, post_op_surgery):
    post_op_surgery.status = "in_progress"
    post_op_surgery.save()
    res = client_for(doctor).post(
        f"/api/v1/surgeries/{post_op_surgery.id}/admit-ward/", {"bed_number": "W-101"}, format="json"
    )
    assert res.status_code == 409


def test_progress_notes(nurse_client, client_for, patient):
    admission = _admit_icu(nurse_client, patient).data
    url = f"/api/v1/icu-admissions/{admission['id']}/notes/"

    res = nurse_client.post(url, {"observations": "Rhythm settled", "recovery_status": "improving"}, format="json")
    assert res.status_code == 201, res.data
    assert res.data["recovery_status"] == "improving"

    listing = client_for("pharmacist").get(url)
    assert listing.status_code == 200
    assert [n["observations"] for n in listing.data["results"]] == ["Rhythm settled"]

    assert client_for("pharmacist").post(url, {"observations": "x"}, format="json").status_code == 403


def test_icu_discharge_steps_down_to_ward(nurse_client, patient):
    admission = _admit_icu(nurse_client, patient).data

    res = nurse_client.post(
        f"/api/v1/icu-admissions/{admission['id']}/discharge/", {"ward_bed_number": "W-101"}, format="json"
    )
    assert res.status_code == 200, res.data
    assert res.data["source"] == "icu_discharge"
    assert res.data["icu_admission_id"] == admission["id"]
    assert res.data["bed_number"] == "W-101"
    assert res.data["admission_reason"] == "ICU step-down: Arrhythmia"

    icu = nurse_client.get(f"/api/v1/icu-admissions/{admission['id']}/").data
    assert icu["status"] == "discharged"
    assert icu["discharged_at"] is not None

    # bed is free again
    assert "ICU-1" in nurse_client.get("/api/v1/icu-admissions/beds/").data["available"]

    again = nurse_client.post(f"/api/v1/icu-admissions/{admission['id']}/discharge/", {}, format="json")
    assert again.status_code == 409


def test_notes_rejected_after_discharge(nurse_client, patient):
    admission = _admit_icu(nurse_client, patient).data
    nurse_client.post(f"/api/v1/icu-admissions/{admission['id']}/discharge/", {}, format="json")

    res = nurse_client.post(f"/api/v1/icu-admissions/{admission['id']}/notes/", {"plan": "x"}, format="json")
    assert res.status_code == 409


def test_ward_admission_without_bed_then_discharge(nurse_client, patient):
    res = nurse_client.post("/api/v1/ward-admissions/", {"patient_id": str(patient.id)}, format="json")
    assert res.status_code == 201, res.data
    assert res.data["source"] == "direct"
    assert res.data["bed_number"] == ""

    out = nurse_client.post(
        f"/api/v1/ward-admissions/{res.data['id']}/discharge/", {"discharge_notes": "Home on meds"}, format="json"
    )
    assert out.status_code == 200
    assert out.data["status"] == "discharged"
    assert out.data["discharge_notes"] == "Home on meds"
    assert WardAdmission.objects.get(id=res.data["id"]).discharged_at is not None


def test_ward_is_limited_to_ward_team(client_for):
    assert client_for("lab_technician").get("/api/v1/ward-admissions/").status_code == 403


def test_icu_discharge_refuses_second_active_ward_stay(nurse_client, patient):
    ward = nurse_client.post("/api/v1/ward-admissions/", {"patient_id": str(patient.id), "bed_number": "W-101"}, format="json")
    assert ward.status_code == 201, ward.data
    admission = _admit_icu(nurse_client, patient).data

    res = nurse_client.post(f"/api/v1/icu-admissions/{admission['id']}/discharge/", {}, format="json")
    assert res.status_code == 409
    assert WardAdmission.objects.filter(patient=patient, status="admitted").count() == 1
    assert IcuAdmission.objects.get(id=admission["id"]).status == "admitted"

    nurse_client.post(f"/api/v1/ward-admissions/{ward.data['id']}/discharge/", {}, format="json")
    res = nurse_client.post(f"/api/v1/icu-admissions/{admission['id']}/discharge/", {}, format="json")
    assert res.status_code == 200, res.data


def test_database_refuses_double_occupied_bed(patient, second_patient):
    IcuAdmission.objects.create(patient=patient, bed_number="ICU-2")
    with pytest.raises(IntegrityError), transaction.atomic():
        IcuAdmission.objects.create(patient=second_patient, bed_number="ICU-2")

    # bedless ward stays do not collide
    WardAdmission.objects.create(patient=patient)
    WardAdmission.objects.create(patient=second_patient)


def test_concurrent_admit_to_same_bed_is_conflict(monkeypatch, patient, second_patient):
    IcuAdmission.objects.create(patient=patient, bed_number="ICU-3")
    # the occupancy read ran before the other admission committed
    monkeypatch.setattr(services, "occupied_beds", lambda unit: set())

    with pytest.raises(StateConflict):
        services.IcuService.admit(bed_number="ICU-3", patient_id=second_patient.id, actor_user_id=None)
    assert IcuAdmission.objects.filter(bed_number="ICU-3").count() == 1
