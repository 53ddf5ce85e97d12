# registry_core/surgery/selectors.py
from __future__ import annotations

from datetime import date, timedelta
from uuid import UUID

from django.db.models import QuerySet
from django.utils import timezone

from registry_core.lab.models import LabTestStatus
from registry_core.surgery.models import Surgery


def list_surgeries(
    *,
    status: str | None = None,
    patient_id: UUID | None = None,
    on_date: date | None = None,
) -> QuerySet[Surgery]:
    qs = Surgery.objects.select_related("patient", "surgeon__profile").prefetch_related("consents")
    if status:
        qs = qs.filter(status__in=[s.strip() for s in status.split(",") if s.strip()])
    if patient_id:
        qs = qs.filter(patient_id=patient_id)
    if on_date:
        qs = qs.filter(scheduled_date=on_date)
    return qs.order_by("scheduled_date", "scheduled_time")


RECENT_VITALS_WINDOW = timedelta(hours=24)
RECENT_LAB_ORDERS = 5


def preop_verification(*, surgery: Surgery) -> dict:
    """
    Bedside identity and readiness check shown before the pre-op checklist.
    Allergies always count as documented; a non-empty list only raises a warning.
    """
    patient = surgery.patient
    latest = patient.vitals.order_by("-recorded_at").first()
    recent_vitals = latest is not None and latest.recorded_at > timezone.now() - RECENT_VITALS_WINDOW

    recent_labs = list(patient.lab_tests.order_by("-ordered_at").values_list("status", flat=True)[:RECENT_LAB_ORDERS])
    labs_done = LabTestStatus.COMPLETED in recent_labs
    allergies = list(patient.allergies or [])

    items = [
        {
            "key": "identity",
            "label": "Patient Identity Confirmed",
            "verified": True,
            "detail": f"{patient.first_name} {patient.last_name} ({patient.patient_number})",
            "warning": False,
        },
        {
            "key": "consent",
            "label": "Consent Status",
            "verified": bool(patient.consent_treatment),
            "detail": "Treatment consent given" if patient.consent_treatment else "Consent required",
            "warning": False,
        },
        {
            "key": "recent_vitals",
            "label": "Recent Vitals (<24h)",
            "verified": recent_vitals,
            "detail": (
                f"BP: {latest.systolic_bp}/{latest.diastolic_bp}, HR: {latest.heart_rate}"
                if recent_vitals
                else "No recent vitals recorded"
            ),
            "warning": False,
        },
        {
            "key": "preop_labs",
            "label": "Pre-operative Labs",
            "verified": labs_done,
            "detail": "Lab results available" if labs_done else "Pending lab results",
            "warning": False,
        },
        {
            "key": "allergies",
            "label": "Allergies Documented",
            "verified": True,
            "detail": f"{len(allergies)} documented" if allergies else "None reported",
            "warning": bool(allergies),
        },
    ]
    return {
        "surgery_id": surgery.id,
        "surgery_name": surgery.surgery_name,
        "scheduled_date": surgery.scheduled_date,
        "patient_id": patient.id,
        "allergies": allergies,
        "chronic_conditions": list(patient.chronic_conditions or []),
        "items": items,
        "all_verified": all(i["verified"] for i in items),
    }
