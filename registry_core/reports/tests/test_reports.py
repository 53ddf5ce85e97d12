# registry_core/reports/tests/test_reports.py
from io import BytesIO

import pytest
from django.utils import timezone
from openpyxl import load_workbook

from registry_core.lab.models import LabTest
from registry_core.notifications.services import NotificationService
from registry_core.vitals.models import Vitals

pytestmark = pytest.mark.django_db

XLSX = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def _sheet(res):
    wb = load_workbook(BytesIO(res.content))
    return wb["Patient Data"]


def _header(ws):
    return [c.value for c in ws[1]]


def test_dashboard_counts(client_for, nurse, patient):
    LabTest.objects.create(patient=patient, test_type="blood", test_name="Troponin")
    NotificationService.notify_user(user_id=nurse.id, title="Hello")

    res = client_for(nurse).get("/api/v1/reports/dashboard/")
    assert res.status_code == 200
    assert res.data["total_patients"] == 1
    assert res.data["pending_lab_tests"] == 1
    assert res.data["unread_notifications"] == 1
    assert res.data["icu_patients"] == 0


def test_summary_is_default_report(client_for, user, patient):
    Vitals.objects.create(patient=patient, systolic_bp=120, diastolic_bp=80, heart_rate=70, recorded_by=user)

    res = client_for("researcher").get("/api/v1/reports/report/")
    assert res.status_code == 200
    assert res.data["type"] == "summary"
    assert res.data["title"] == "Summary Report"
    assert res.data["end"] == timezone.localdate().isoformat()
    rows = dict(res.data["rows"])
    assert rows["Total Patients"] == 1
    assert rows["Vitals Records (Period)"] == 1


def test_patients_report_lists_all(api_client, patient):
    res = api_client.get("/api/v1/reports/report/", {"type": "patients", "start": "2000-01-01", "end": "2000-01-02"})
    assert res.status_code == 200
    assert len(res.data["rows"]) == 1
    assert res.data["rows"][0][0] == "PT-000001"
    assert len(res.data["columns"]) == len(res.data["rows"][0])


def test_reversed_period_is_rejected(api_client):
    res = api_client.get("/api/v1/reports/report/", {"type": "vitals", "start": "2030-02-01", "end": "2030-01-01"})
    assert res.status_code == 400
    assert res.data["error"]["code"] == "validation_error"


def test_unknown_report_type_is_rejected(api_client):
    assert api_client.get("/api/v1/reports/report/", {"type": "weather"}).status_code == 400


def test_pdf_output(api_client, patient):
    res = api_client.get("/api/v1/reports/report/", {"type": "patients", "output": "pdf"})
    assert res.status_code == 200
    assert res["Content-Type"] == "application/pdf"
    assert 'filename="patients-report-' in res["Content-Disposition"]
    assert res.content.startswith(b"%PDF")


def test_admin_export_is_identifiable(api_client, user, patient):
    Vitals.objects.create(patient=patient, systolic_bp=140, diastolic_bp=90, heart_rate=88, recorded_by=user)

    res = api_client.get("/api/v1/reports/patient-export/", {"groups": "registration,latest_vitals"})
    assert res.status_code == 200
    assert res["Content-Type"] == XLSX

    ws = _sheet(res)
    header = _header(ws)
    assert "First Name" in header
    assert "Blood Pressure" in header
    row = dict(zip(header, [c.value for c in ws[2]]))
    assert row["First Name"] == "Amina"
    assert row["Blood Pressure"] == "140/90"
    assert ws.max_row == 2


def test_researcher_export_is_deidentified(client_for, patient):
    res = client_for("researcher").get("/api/v1/reports/patient-export/")
    assert res.status_code == 200

    header = _header(_sheet(res))
    assert "Patient Number" in header
    for label in ("First Name", "Last Name", "National ID", "Email", "Phone", "Address"):
        assert label not in header


def test_unknown_group_is_rejected(api_client):
    res = api_client.get("/api/v1/reports/patient-export/", {"groups": "registration,genome"})
    assert res.status_code == 400


def test_export_is_audited(api_client, patient):
    from registry_core.audit.models import ActivityLog

    api_client.get("/api/v1/reports/patient-export/")
    entry = ActivityLog.objects.get(action="export", entity_type="patient_export")
    assert entry.details["patient_count"] == 1
    assert entry.details["identifiable"] is True


def test_pharmacist_cannot_export(client_for):
    assert client_for("pharmacist").get("/api/v1/reports/patient-export/").status_code == 403
