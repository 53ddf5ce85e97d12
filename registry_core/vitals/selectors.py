# registry_core/vitals/selectors.py
from __future__ import annotations

from uuid import UUID

from django.db.models import QuerySet

from registry_core.vitals.models import Vitals


def list_vitals(*, patient_id: UUID | None = None) -> QuerySet[Vitals]:
    qs = Vitals.objects.select_related("patient")
    if patient_id:
        qs = qs.filter(patient_id=patient_id)
    return qs.order_by("-recorded_at")


def latest_vitals(*, patient_id: UUID) -> Vitals | None:
    return Vitals.objects.filter(patient_id=patient_id).order_by("-recorded_at").first()
