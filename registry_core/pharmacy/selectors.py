# registry_core/pharmacy/selectors.py
from __future__ import annotations

from uuid import UUID

from django.db.models import QuerySet

from registry_core.pharmacy.models import Prescription, PrescriptionStatus


def list_prescriptions(*, status: str | None = None, patient_id: UUID | None = None) -> QuerySet[Prescription]:
    qs = Prescription.objects.select_related("patient").prefetch_related("items")
    if status:
        qs = qs.filter(status=status)
    if patient_id:
        qs = qs.filter(patient_id=patient_id)
    return qs.order_by("-created_at")


def dispensing_history() -> QuerySet[Prescription]:
    return list_prescriptions(status=PrescriptionStatus.DISPENSED).order_by("-dispensed_at")
