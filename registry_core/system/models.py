# registry_core/system/models.py
from django.conf import settings
from django.core.serializers.json import DjangoJSONEncoder
from django.db import models

from registry_core.common.models import RegistryModel

MODULE_KEYS = (
    "dashboard",
    "patients",
    "register_patient",
    "vitals",
    "appointments",
    "my_patients",
    "consultation",
    "my_schedule",
    "lab_orders",
    "lab_results",
    "prescriptions",
    "pharmacy",
    "pre_operative",
    "intra_operative",
    "post_operative",
    "icu",
    "ward",
    "follow_ups",
    "reports",
    "user_management",
    "settings",
)


def default_enabled_modules() -> dict:
    return {k: True for k in MODULE_KEYS}


def default_site_name() -> str:
    return getattr(settings, "REGISTRY_SITE_NAME", "CardioRegistry")


class Theme(models.TextChoices):
    LIGHT = "light", "Light"
    DARK = "dark", "Dark"
    SYSTEM = "system", "System"


class SystemSettings(RegistryModel):
    """Single row of site-wide settings; use SystemSettings.load()."""
    key = models.CharField(max_length=16, unique=True, default="default", editable=False)
    site_name = models.CharField(max_length=128, default=default_site_name)
    logo_url = models.URLField(max_length=500, blank=True, default="")
    theme = models.CharField(max_length=16, choices=Theme.choices, default=Theme.SYSTEM)
    enabled_modules = models.JSONField(default=default_enabled_modules)
    updated_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )

    class Meta:
        db_table = "system_settings"
        verbose_name_plural = "system settings"

    def __str__(self) -> str:
        return self.site_name

    @classmethod
    def load(cls) -> "SystemSettings":
        obj, _ = cls.objects.get_or_create(key="default")
        return obj


class BackupType(models.TextChoices):
    MANUAL = "manual", "Manual"
    PRE_FLUSH = "pre_flush", "Pre-flush"
    SCHEDULED = "scheduled", "Scheduled"


class BackupStatus(models.TextChoices):
    ACTIVE = "active", "Active"
    RESTORED = "restored", "Restored"


class SystemBackup(RegistryModel):
    backup_type = models.CharField(max_length=16, choices=BackupType.choices, default=BackupType.MANUAL)
    backup_data = models.JSONField(encoder=DjangoJSONEncoder)
    record_counts = models.JSONField(default=dict, blank=True)
    status = models.CharField(max_length=16, choices=BackupStatus.choices, default=BackupStatus.ACTIVE)

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    restored_at = models.DateTimeField(null=True, blank=True)
    restored_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )

    class Meta:
        db_table = "system_backups"
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"{self.backup_type} backup {self.created_at:%Y-%m-%d %H:%M}"
