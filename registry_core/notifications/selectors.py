# registry_core/notifications/selectors.py
from __future__ import annotations

from django.db.models import QuerySet

from registry_core.notifications.models import Notification


def notifications_for(*, user_id: int, is_read: bool | None = None) -> QuerySet[Notification]:
    qs = Notification.objects.filter(user_id=user_id)
    if is_read is not None:
        qs = qs.filter(is_read=is_read)
    return qs.order_by("-created_at")


def unread_count(*, user_id: int) -> int:
    return Notification.objects.filter(user_id=user_id, is_read=False).count()
