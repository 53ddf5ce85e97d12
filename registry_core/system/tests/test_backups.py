# registry_core/system/tests/test_backups.py
import json
from io import StringIO

import pytest
from django.core.management import call_command

from registry_core.audit.models import ActivityLog
from registry_core.consultations.models import Consultation
from registry_core.inpatient.models import IcuAdmission, IcuProgressNote, WardAdmission
from registry_core.inpatient.services import IcuService
from registry_core.lab.models import LabResult, LabTest
from registry_core.patients.models import Patient
from registry_core.pharmacy.models import Prescription, PrescriptionItem
from registry_core.surgery.models import Surgery, SurgicalConsent
from registry_core.system.models import SystemBackup
from registry_core.system.backup import TABLES
from registry_core.vitals.models import Vitals

pytestmark = pytest.mark.django_db

URL = "/api/v1/system/backups/"


def test_backups_are_admin_only(client_for):
    assert client_for("doctor").get(URL).status_code == 403
    assert client_for("doctor").post(URL).status_code == 403


def test_create_records_counts(api_client, patient):
    res = api_client.post(URL)
    assert res.status_code == 201
    assert res.data["backup_type"] == "manual"
    assert res.data["status"] == "active"
    assert res.data["record_counts"]["patients"] == 1
    assert res.data["record_counts"]["vitals"] == 0
    assert "backup_data" not in res.data

    assert ActivityLog.objects.filter(action="system_backup", entity_id=res.data["id"]).exists()


def test_flush_then_restore(api_client, user, patient):
    Vitals.objects.create(patient=patient, systolic_bp=120, diastolic_bp=80, heart_rate=72, recorded_by=user)
    backup = api_client.post(URL).data

    flushed = api_client.post(f"{URL}flush/")
    assert flushed.status_code == 200
    assert flushed.data["backup_type"] == "pre_flush"
    assert Patient.objects.count() == 0
    assert Vitals.objects.count() == 0

    res = api_client.post(f"{URL}{backup['id']}/restore/")
    assert res.status_code == 200, res.data
    assert res.data["status"] == "restored"
    assert res.data["restored_by_id"] == user.id

    restored = Patient.objects.get(id=patient.id)
    assert restored.patient_number == "PT-000001"
    assert abs(restored.created_at - patient.created_at).total_seconds() < 1
    assert Vitals.objects.get().heart_rate == 72


def test_restore_rejects_incomplete_payload(api_client):
    bad = SystemBackup.objects.create(backup_data={"patients": []})
    res = api_client.post(f"{URL}{bad.id}/restore/")
    assert res.status_code == 400
    assert "missing tables" in res.data["error"]["message"]


def test_download_and_delete(api_client, patient):
    backup = api_client.post(URL).data

    res = api_client.get(f"{URL}{backup['id']}/download/")
    assert res.status_code == 200
    assert res["Content-Type"] == "application/json"
    assert "attachment" in res["Content-Disposition"]
    body = json.loads(res.content)
    assert body["patients"][0]["patient_number"] == "PT-000001"
    assert "backup_timestamp" in body

    assert api_client.delete(f"{URL}{backup['id']}/").status_code == 204
    assert api_client.get(f"{URL}{backup['id']}/").status_code == 404


def test_create_backup_command(patient):
    out = StringIO()
    call_command("create_backup", stdout=out)

    obj = SystemBackup.objects.get()
    assert obj.backup_type == "scheduled"
    assert obj.created_by_id is None
    assert str(obj.id) in out.getvalue()


@pytest.fixture
def clinical_graph(user, doctor, patient):
    """One patient carried from consultation through surgery, ICU and ward."""
    consult = Consultation.objects.create(patient=patient, doctor=doctor, status="referred_to_surgery")
    lab = LabTest.objects.create(
        patient=patient, ordered_by=doctor, consultation=consult, test_type="blood", test_name="Troponin", status="completed"
    )
    LabResult.objects.create(lab_test=lab, parameter_name="Troponin I", value="0.02", entered_by=user)
    rx = Prescription.objects.create(patient=patient, prescribed_by=doctor, consultation=consult)
    PrescriptionItem.objects.create(prescription=rx, medication_name="Aspirin", dosage="75mg")
    surgery = Surgery.objects.create(
        patient=patient,
        surgeon=doctor,
        consultation=consult,
        surgery_type="cardiac",
        surgery_name="CABG x2",
        scheduled_date="2030-01-08",
        status="completed",
    )
    SurgicalConsent.objects.create(
        surgery=surgery, patient=patient, consent_type="surgical", risks_explained=True, patient_signature="A. Otieno"
    )
    icu = IcuAdmission.objects.create(patient=patient, surgery=surgery, bed_number="ICU-1", admitted_by=user)
    IcuProgressNote.objects.create(icu_admission=icu, recorded_by=user, observations="Extubated", recovery_status="improving")
    IcuService.discharge(icu_admission_id=icu.id, actor_user_id=user.id, ward_bed_number="W-101")
    return {"consultation": consult, "surgery": surgery, "icu": icu}


def _counts() -> dict:
    return {name: model.objects.count() for name, model in TABLES.items()}


def test_full_graph_round_trip(api_client, clinical_graph):
    before = _counts()
    backup = api_client.post(URL).data
    api_client.post(f"{URL}flush/")
    assert Surgery.objects.count() == 0

    res = api_client.post(f"{URL}{backup['id']}/restore/")
    assert res.status_code == 200, res.data
    assert _counts() == before

    surgery = Surgery.objects.get(id=clinical_graph["surgery"].id)
    assert surgery.consultation_id == clinical_graph["consultation"].id
    assert surgery.consents.get().risks_explained is True
    assert LabResult.objects.get().lab_test.consultation_id == clinical_graph["consultation"].id

    step_down = WardAdmission.objects.get()
    assert step_down.icu_admission_id == clinical_graph["icu"].id
    assert step_down.source == "icu_discharge"
    assert step_down.bed_number == "W-101"
    assert IcuProgressNote.objects.get().icu_admission.status == "discharged"


def test_failed_restore_leaves_existing_data_untouched(api_client, clinical_graph):
    backup = SystemBackup.objects.get(id=api_client.post(URL).data["id"])
    # a duplicated surgery row fails after patients, labs and consultations were inserted
    backup.backup_data["surgeries"].append(dict(backup.backup_data["surgeries"][0]))
    backup.save()

    Patient.objects.create(
        patient_number="PT-000002", first_name="Brian", last_name="Mwangi", date_of_birth="1975-03-02", gender="male"
    )
    before = _counts()

    res = api_client.post(f"{URL}{backup.id}/restore/")
    assert res.status_code == 400
    assert "surgeries" in res.json()["error"]["message"]

    assert _counts() == before
    assert Patient.objects.filter(patient_number="PT-000002").exists()
    backup.refresh_from_db()
    assert backup.status == "active"
    assert backup.restored_at is None
    assert not ActivityLog.objects.filter(action="system_restore").exists()
