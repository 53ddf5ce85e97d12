# registry_core/system/admin.py
from django.contrib import admin

from registry_core.system.models import SystemBackup, SystemSettings


@admin.register(SystemSettings)
class SystemSettingsAdmin(admin.ModelAdmin):
    list_display = ("site_name", "theme", "updated_at")


@admin.register(SystemBackup)
class SystemBackupAdmin(admin.ModelAdmin):
    list_display = ("created_at", "backup_type", "status", "restored_at")
    list_filter = ("backup_type", "status")
    exclude = ("backup_data",)
    readonly_fields = ("backup_type", "status", "record_counts", "created_by", "restored_at", "restored_by")
