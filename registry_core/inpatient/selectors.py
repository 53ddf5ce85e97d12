# registry_core/inpatient/selectors.py
from __future__ import annotations

from uuid import UUID

from django.db.models import QuerySet

from registry_core.inpatient.models import IcuAdmission, IcuProgressNote, WardAdmission


def list_icu_admissions(*, status: str | None = None, patient_id: UUID | None = None) -> QuerySet[IcuAdmission]:
    qs = IcuAdmission.objects.select_related("patient", "surgery")
    if status:
        qs = qs.filter(status=status)
    if patient_id:
        qs = qs.filter(patient_id=patient_id)
    return qs.order_by("-admitted_at")


def progress_notes(*, icu_admission_id: UUID) -> QuerySet[IcuProgressNote]:
    return IcuProgressNote.objects.filter(icu_admission_id=icu_admission_id).order_by("-created_at")


def list_ward_admissions(*, status: str | None = None, patient_id: UUID | None = None) -> QuerySet[WardAdmission]:
    qs = WardAdmission.objects.select_related("patient", "surgery", "icu_admission")
    if status:
        qs = qs.filter(status=status)
    if patient_id:
        qs = qs.filter(patient_id=patient_id)
    return qs.order_by("-admitted_at")
