# registry_core/notifications/services.py
from __future__ import annotations

import logging
from typing import Iterable
from uuid import UUID

from django.db import transaction
from django.utils import timezone

from registry_core.iam.selectors import users_with_role
from registry_core.notifications.models import Notification, NotificationType

logger = logging.getLogger(__name__)


class NotificationService:
    @staticmethod
    @transaction.atomic
    def notify_users(
        *,
        user_ids: Iterable[int],
        title: str,
        message: str = "",
        notification_type: str = NotificationType.INFO,
        related_entity_type: str = "",
        related_entity_id: UUID | None = None,
    ) -> list[Notification]:
        objs = [
            Notification(
                user_id=uid,
                title=title,
                message=message,
                notification_type=notification_type,
                related_entity_type=related_entity_type,
                related_entity_id=related_entity_id,
            )
            for uid in dict.fromkeys(u for u in user_ids if u is not None)
        ]
        created = Notification.objects.bulk_create(objs)
        logger.info("notify title=%r recipients=%s type=%s", title, len(created), notification_type)
        return created

    @staticmethod
    def notify_user(*, user_id: int | None, **kwargs) -> Notification | None:
        if user_id is None:
            return None
        created = NotificationService.notify_users(user_ids=[user_id], **kwargs)
        return created[0] if created else None

    @staticmethod
    def notify_role(*, role: str, **kwargs) -> list[Notification]:
        """Fan out to every active member of a role."""
        user_ids = list(users_with_role(role).values_list("id", flat=True))
        if not user_ids:
            logger.warning("notify_role role=%s has no active members", role)
            return []
        return NotificationService.notify_users(user_ids=user_ids, **kwargs)

    @staticmethod
    @transaction.atomic
    def mark_read(*, user_id: int, notification_id: UUID) -> Notification:
        notif = Notification.objects.get(id=notification_id, user_id=user_id)
        notif.mark_read()
        notif.save(update_fields=["is_read", "read_at", "updated_at"])
        return notif

    @staticmethod
    @transaction.atomic
    def mark_all_read(*, user_id: int) -> int:
        return Notification.objects.filter(user_id=user_id, is_read=False).update(
            is_read=True,
            read_at=timezone.now(),
            updated_at=timezone.now(),
        )

    @staticmethod
    @transaction.atomic
    def delete(*, user_id: int, notification_id: UUID) -> None:
        Notification.objects.get(id=notification_id, user_id=user_id).delete()
