# registry_core/reports/selectors.py
from __future__ import annotations

from datetime import date, timedelta
from typing import Any, Dict, List, Tuple

from django.conf import settings
from django.utils import timezone

from registry_core.appointments.models import Appointment
from registry_core.inpatient.models import AdmissionStatus, IcuAdmission, WardAdmission
from registry_core.lab.models import LabTest, LabTestStatus
from registry_core.notifications.selectors import unread_count
from registry_core.patients.models import Patient, PatientStatus
from registry_core.pharmacy.models import Prescription, PrescriptionStatus
from registry_core.surgery.models import Surgery, SurgeryStatus
from registry_core.vitals.models import Vitals

REPORT_TITLES = {
    "patients": "Patient Registry",
    "vitals": "Vitals Report",
    "lab_tests": "Lab Tests Report",
    "prescriptions": "Prescriptions Report",
    "surgeries": "Surgeries Report",
    "summary": "Summary Report",
}

REPORT_COLUMNS = {
    "patients": ["Patient #", "Name", "DOB", "Gender", "Phone", "Blood Type", "Status"],
    "vitals": ["Patient", "BP", "HR", "SpO2", "Temp", "Weight", "Recorded"],
    "lab_tests": ["Patient", "Test", "Type", "Priority", "Status", "Ordered"],
    "prescriptions": ["Patient", "Status", "Prescribed", "Dispensed"],
    "surgeries": ["Patient", "Procedure", "Type", "Date", "Room", "Status"],
    "summary": ["Metric", "Value"],
}


def report_period(start: date | None, end: date | None) -> Tuple[date, date]:
    """Resolve the report window; both ends are inclusive."""
    end = end or timezone.localdate()
    start = start or end - timedelta(days=settings.REGISTRY_REPORT_DEFAULT_DAYS)
    if start > end:
        raise ValueError("start must be on or before end.")
    return start, end


def dashboard_stats(*, user_id: int) -> Dict[str, int]:
    today = timezone.localdate()
    return {
        "total_patients": Patient.objects.count(),
        "todays_appointments": Appointment.objects.filter(appointment_date=today).count(),
        "pending_lab_tests": LabTest.objects.filter(status=LabTestStatus.PENDING).count(),
        "pending_prescriptions": Prescription.objects.filter(status=PrescriptionStatus.PENDING).count(),
        "todays_surgeries": Surgery.objects.filter(scheduled_date=today).count(),
        "icu_patients": IcuAdmission.objects.filter(status=AdmissionStatus.ADMITTED).count(),
        "ward_patients": WardAdmission.objects.filter(status=AdmissionStatus.ADMITTED).count(),
        "unread_notifications": unread_count(user_id=user_id),
    }


def _who(obj) -> str:
    p = obj.patient
    return f"{p.first_name} {p.last_name} ({p.patient_number})"


def _stamp(value) -> str:
    if not value:
        return ""
    return timezone.localtime(value).strftime("%Y-%m-%d %H:%M")


def _patients(start: date, end: date) -> List[List[Any]]:
    # The registry listing covers every patient, not just the period.
    return [
        [
            p.patient_number,
            p.full_name,
            p.date_of_birth.isoformat(),
            p.gender,
            p.phone,
            p.blood_type,
            p.status,
        ]
        for p in Patient.objects.order_by("-created_at")
    ]


def _vitals(start: date, end: date) -> List[List[Any]]:
    qs = (
        Vitals.objects.select_related("patient")
        .filter(recorded_at__date__gte=start, recorded_at__date__lte=end)
        .order_by("-recorded_at")
    )
    return [
        [
            _who(v),
            f"{v.systolic_bp}/{v.diastolic_bp}",
            v.heart_rate,
            v.oxygen_saturation if v.oxygen_saturation is not None else "",
            str(v.temperature) if v.temperature is not None else "",
            str(v.weight) if v.weight is not None else "",
            _stamp(v.recorded_at),
        ]
        for v in qs
    ]


def _lab_tests(start: date, end: date) -> List[List[Any]]:
    qs = (
        LabTest.objects.select_related("patient")
        .filter(ordered_at__date__gte=start, ordered_at__date__lte=end)
        .order_by("-ordered_at")
    )
    return [[_who(t), t.test_name, t.test_type, t.priority, t.status, _stamp(t.ordered_at)] for t in qs]


def _prescriptions(start: date, end: date) -> List[List[Any]]:
    qs = (
        Prescription.objects.select_related("patient")
        .filter(created_at__date__gte=start, created_at__date__lte=end)
        .order_by("-created_at")
    )
    return [[_who(rx), rx.status, _stamp(rx.created_at), _stamp(rx.dispensed_at)] for rx in qs]


def _surgeries(start: date, end: date) -> List[List[Any]]:
    qs = (
        Surgery.objects.select_related("patient")
        .filter(scheduled_date__gte=start, scheduled_date__lte=end)
        .order_by("-scheduled_date")
    )
    return [
        [_who(s), s.surgery_name, s.surgery_type, s.scheduled_date.isoformat(), s.operating_room, s.status]
        for s in qs
    ]


def _summary(start: date, end: date) -> List[List[Any]]:
    vitals = Vitals.objects.filter(recorded_at__date__gte=start, recorded_at__date__lte=end)
    labs = LabTest.objects.filter(ordered_at__date__gte=start, ordered_at__date__lte=end)
    rxs = Prescription.objects.filter(created_at__date__gte=start, created_at__date__lte=end)
    surgeries = Surgery.objects.filter(scheduled_date__gte=start, scheduled_date__lte=end)
    return [
        ["Total Patients", Patient.objects.count()],
        ["Active Patients", Patient.objects.filter(status=PatientStatus.ACTIVE).count()],
        ["Vitals Records (Period)", vitals.count()],
        ["Lab Tests (Period)", labs.count()],
        ["Pending Lab Tests", labs.filter(status=LabTestStatus.PENDING).count()],
        ["Prescriptions (Period)", rxs.count()],
        ["Pending Dispensing", rxs.filter(status=PrescriptionStatus.PENDING).count()],
        ["Surgeries (Period)", surgeries.count()],
        ["Completed Surgeries", surgeries.filter(status=SurgeryStatus.COMPLETED).count()],
    ]


_BUILDERS = {
    "patients": _patients,
    "vitals": _vitals,
    "lab_tests": _lab_tests,
    "prescriptions": _prescriptions,
    "surgeries": _surgeries,
    "summary": _summary,
}


def report_rows(*, report_type: str, start: date, end: date) -> Dict[str, Any]:
    builder = _BUILDERS.get(report_type)
    if builder is None:
        raise ValueError(f"Unknown report type: {report_type}. Choose from {', '.join(_BUILDERS)}.")
    return {
        "type": report_type,
        "title": REPORT_TITLES[report_type],
        "start": start,
        "end": end,
        "columns": REPORT_COLUMNS[report_type],
        "rows": builder(start, end),
    }
