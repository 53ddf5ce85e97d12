# registry_core/audit/selectors.py
from __future__ import annotations

from datetime import date

from django.db.models import Count, QuerySet

from registry_core.audit.models import ActivityLog


def list_activity(
    *,
    action: str | None = None,
    entity_type: str | None = None,
    entity_id: str | None = None,
    user_id: int | None = None,
    date_from: date | None = None,
    date_to: date | None = None,
) -> QuerySet[ActivityLog]:
    qs = ActivityLog.objects.select_related("user")

    if action:
        qs = qs.filter(action=action)
    if entity_type:
        qs = qs.filter(entity_type=entity_type)
    if entity_id:
        qs = qs.filter(entity_id=entity_id)
    if user_id is not None:
        qs = qs.filter(user_id=user_id)
    if date_from:
        qs = qs.filter(created_at__date__gte=date_from)
    if date_to:
        qs = qs.filter(created_at__date__lte=date_to)

    return qs.order_by("-created_at")


def action_counts(qs: QuerySet[ActivityLog]) -> dict[str, int]:
    rows = qs.order_by().values("action").annotate(n=Count("id"))
    return {r["action"]: r["n"] for r in rows}
