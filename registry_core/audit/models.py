# registry_core/audit/models.py
from django.conf import settings
from django.core.serializers.json import DjangoJSONEncoder
from django.db import models

from registry_core.common.models import RegistryModel


class ActivityAction(models.TextChoices):
    LOGIN = "login", "Login"
    LOGOUT = "logout", "Logout"
    VIEW = "view", "View"
    CREATE = "create", "Create"
    UPDATE = "update", "Update"
    DELETE = "delete", "Delete"
    STATUS_CHANGE = "status_change", "Status change"
    ROLE_ASSIGNED = "role_assigned", "Role assigned"
    EXPORT = "export", "Export"
    SYSTEM_BACKUP = "system_backup", "System backup"
    SYSTEM_RESTORE = "system_restore", "System restore"
    SYSTEM_FLUSH = "system_flush", "System flush"


# Written by services only; clients may log `view` and their own free-text actions.
SERVER_ACTIONS = frozenset(a.value for a in ActivityAction if a != ActivityAction.VIEW)


class ActivityLog(RegistryModel):
    """
    Immutable record of who did what.
    `action` is free text so clients can log their own events; the
    choices above are the ones the server writes.
    """
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        related_name="activity_logs",
        null=True,
        blank=True,
    )
    action = models.CharField(max_length=64, db_index=True)
    entity_type = models.CharField(max_length=64, blank=True, default="", db_index=True)
    entity_id = models.CharField(max_length=64, blank=True, default="", db_index=True)
    details = models.JSONField(default=dict, blank=True, encoder=DjangoJSONEncoder)

    ip_address = models.GenericIPAddressField(null=True, blank=True)
    user_agent = models.TextField(blank=True, default="")
    page_path = models.CharField(max_length=255, blank=True, default="")
    session_duration_seconds = models.PositiveIntegerField(null=True, blank=True)

    class Meta:
        db_table = "audit_activity_log"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["entity_type", "entity_id"]),
            models.Index(fields=["user", "created_at"]),
        ]

    def __str__(self) -> str:
        return f"{self.action} {self.entity_type}:{self.entity_id}"
