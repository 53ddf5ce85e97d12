# registry_core/notifications/models.py
from __future__ import annotations

from django.conf import settings
from django.db import models
from django.utils import timezone

from registry_core.common.models import RegistryModel


class NotificationType(models.TextChoices):
    INFO = "info", "Info"
    SUCCESS = "success", "Success"
    WARNING = "warning", "Warning"
    ERROR = "error", "Error"
    REMINDER = "reminder", "Reminder"


class Notification(RegistryModel):
    """
    In-app inbox entry for one user.
    Related entity is a loose (type, id) pair so any module can link here.
    """
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="notifications",
    )

    title = models.CharField(max_length=255)
    message = models.TextField(blank=True, default="")
    notification_type = models.CharField(
        max_length=16,
        choices=NotificationType.choices,
        default=NotificationType.INFO,
        db_index=True,
    )

    related_entity_type = models.CharField(max_length=64, blank=True, default="")
    related_entity_id = models.UUIDField(null=True, blank=True, db_index=True)

    is_read = models.BooleanField(default=False, db_index=True)
    read_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = "notifications_notification"
        indexes = [
            models.Index(fields=["user", "is_read", "created_at"]),
        ]

    def mark_read(self) -> None:
        if not self.is_read:
            self.is_read = True
            self.read_at = timezone.now()
