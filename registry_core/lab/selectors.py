# registry_core/lab/selectors.py
from __future__ import annotations

from uuid import UUID

from django.db.models import Case, IntegerField, QuerySet, Value, When

from registry_core.lab.models import LabPriority, LabTest

PRIORITY_RANK = Case(
    When(priority=LabPriority.STAT, then=Value(0)),
    When(priority=LabPriority.URGENT, then=Value(1)),
    default=Value(2),
    output_field=IntegerField(),
)


def list_tests(
    *,
    status: str | None = None,
    priority: str | None = None,
    patient_id: UUID | None = None,
    ordered_by_id: int | None = None,
) -> QuerySet[LabTest]:
    """Work queue order: stat, urgent, routine; oldest first within a priority."""
    qs = LabTest.objects.select_related("patient").prefetch_related("results")
    if status:
        qs = qs.filter(status=status)
    if priority:
        qs = qs.filter(priority=priority)
    if patient_id:
        qs = qs.filter(patient_id=patient_id)
    if ordered_by_id:
        qs = qs.filter(ordered_by_id=ordered_by_id)
    return qs.annotate(priority_rank=PRIORITY_RANK).order_by("priority_rank", "ordered_at")


def get_test(*, lab_test_id: UUID) -> LabTest:
    return LabTest.objects.select_related("patient").prefetch_related("results").get(id=lab_test_id)
