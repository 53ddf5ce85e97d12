# registry_core/reports/excel.py
from __future__ import annotations

import io
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Sequence, Tuple

from django.db.models import Prefetch, QuerySet
from django.utils import timezone
from openpyxl import Workbook
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter

from registry_core.consultations.models import Consultation
from registry_core.lab.models import LabTest, LabTestStatus
from registry_core.patients.models import Patient
from registry_core.surgery.models import Surgery
from registry_core.vitals.models import Vitals

FIELD_GROUPS: Dict[str, List[Tuple[str, str]]] = {
    "registration": [
        ("patient_number", "Patient Number"),
        ("first_name", "First Name"),
        ("last_name", "Last Name"),
        ("date_of_birth", "Date of Birth"),
        ("gender", "Gender"),
        ("national_id", "National ID"),
        ("email", "Email"),
        ("phone", "Phone"),
        ("address", "Address"),
        ("city", "City"),
        ("blood_type", "Blood Type"),
        ("status", "Status"),
        ("created_at", "Registered Date"),
    ],
    "emergency_contact": [
        ("emergency_contact_name", "Emergency Contact Name"),
        ("emergency_contact_phone", "Emergency Contact Phone"),
        ("emergency_contact_relationship", "Relationship"),
    ],
    "medical_history": [
        ("allergies", "Allergies"),
        ("chronic_conditions", "Chronic Conditions"),
        ("cardiovascular_history", "Cardiovascular History"),
        ("previous_surgeries", "Previous Surgeries"),
        ("current_medications", "Current Medications"),
    ],
    "consent": [
        ("consent_treatment", "Treatment Consent"),
        ("consent_biological_samples", "Biological Samples Consent"),
        ("consent_date", "Consent Date"),
    ],
    "latest_vitals": [
        ("vitals_bp", "Blood Pressure"),
        ("vitals_hr", "Heart Rate"),
        ("vitals_spo2", "Oxygen Saturation"),
        ("vitals_temp", "Temperature"),
        ("vitals_weight", "Weight"),
        ("vitals_height", "Height"),
        ("vitals_date", "Vitals Recorded Date"),
    ],
    "consultations": [
        ("consultation_count", "Total Consultations"),
        ("last_consultation_date", "Last Consultation Date"),
        ("last_diagnosis", "Last Diagnosis"),
    ],
    "surgeries": [
        ("surgery_count", "Total Surgeries"),
        ("last_surgery_name", "Last Surgery Name"),
        ("last_surgery_date", "Last Surgery Date"),
        ("last_surgery_status", "Last Surgery Status"),
    ],
    "lab_tests": [
        ("lab_test_count", "Total Lab Tests"),
        ("pending_lab_tests", "Pending Lab Tests"),
    ],
}

# Dropped from de-identified exports; patient_number stays as the linking key.
IDENTIFYING_FIELDS = {
    "first_name",
    "last_name",
    "national_id",
    "email",
    "phone",
    "address",
    "emergency_contact_name",
    "emergency_contact_phone",
}

HEADER_FILL = PatternFill(start_color="3498db", end_color="3498db", fill_type="solid")
HEADER_FONT = Font(bold=True, color="FFFFFF")


def resolve_groups(groups: Iterable[str] | None) -> List[str]:
    chosen = [g for g in (groups or []) if g]
    if not chosen:
        return ["registration"]
    unknown = sorted(set(chosen) - set(FIELD_GROUPS))
    if unknown:
        raise ValueError(f"Unknown field groups: {', '.join(unknown)}")
    # Keep the canonical column order regardless of request order.
    return [g for g in FIELD_GROUPS if g in chosen]


def export_columns(groups: Sequence[str], *, identifiable: bool) -> List[Tuple[str, str]]:
    cols = [f for g in groups for f in FIELD_GROUPS[g]]
    if not identifiable:
        cols = [(k, label) for k, label in cols if k not in IDENTIFYING_FIELDS]
    return cols


def export_queryset(*, start: date | None, end: date | None, status: str | None) -> QuerySet[Patient]:
    qs = Patient.objects.order_by("-created_at").prefetch_related(
        Prefetch("vitals", queryset=Vitals.objects.order_by("-recorded_at")),
        Prefetch("consultations", queryset=Consultation.objects.order_by("-consultation_date")),
        Prefetch("surgeries", queryset=Surgery.objects.order_by("-scheduled_date")),
        "lab_tests",
    )
    if start:
        qs = qs.filter(created_at__date__gte=start)
    if end:
        qs = qs.filter(created_at__date__lte=end)
    if status:
        qs = qs.filter(status=status)
    return qs


def _fmt(value) -> Any:
    if value is None:
        return ""
    if isinstance(value, list):
        return ", ".join(str(v) for v in value)
    if isinstance(value, datetime):
        return timezone.localtime(value).strftime("%Y-%m-%d %H:%M")
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, bool):
        return "Yes" if value else "No"
    return value


def _derived(patient: Patient) -> Dict[str, Any]:
    vitals = list(patient.vitals.all())
    consultations = list(patient.consultations.all())
    surgeries = list(patient.surgeries.all())
    labs = list(patient.lab_tests.all())

    out: Dict[str, Any] = {
        "consultation_count": len(consultations),
        "surgery_count": len(surgeries),
        "lab_test_count": len(labs),
        "pending_lab_tests": sum(1 for t in labs if t.status == LabTestStatus.PENDING),
    }
    if vitals:
        v = vitals[0]
        out.update(
            vitals_bp=f"{v.systolic_bp}/{v.diastolic_bp}",
            vitals_hr=v.heart_rate,
            vitals_spo2=v.oxygen_saturation,
            vitals_temp=v.temperature,
            vitals_weight=v.weight,
            vitals_height=v.height,
            vitals_date=v.recorded_at,
        )
    if consultations:
        c = consultations[0]
        out.update(last_consultation_date=c.consultation_date.date(), last_diagnosis=c.diagnosis)
    if surgeries:
        s = surgeries[0]
        out.update(
            last_surgery_name=s.surgery_name,
            last_surgery_date=s.scheduled_date,
            last_surgery_status=s.status,
        )
    return out


def export_rows(patients: Iterable[Patient], columns: Sequence[Tuple[str, str]]) -> List[List[Any]]:
    rows = []
    for patient in patients:
        derived = _derived(patient)
        row = []
        for key, _label in columns:
            value = derived[key] if key in derived else getattr(patient, key, None)
            row.append(_fmt(value))
        rows.append(row)
    return rows


def build_workbook(columns: Sequence[Tuple[str, str]], rows: Sequence[Sequence[Any]]) -> bytes:
    wb = Workbook()
    ws = wb.active
    ws.title = "Patient Data"

    for col_idx, (_key, label) in enumerate(columns, 1):
        cell = ws.cell(row=1, column=col_idx, value=label)
        cell.fill = HEADER_FILL
        cell.font = HEADER_FONT
        cell.alignment = Alignment(horizontal="center")

    for row_idx, row in enumerate(rows, 2):
        for col_idx, value in enumerate(row, 1):
            ws.cell(row=row_idx, column=col_idx, value=value)

    for col_idx, (_key, label) in enumerate(columns, 1):
        ws.column_dimensions[get_column_letter(col_idx)].width = max(len(label), 15)

    output = io.BytesIO()
    wb.save(output)
    return output.getvalue()
