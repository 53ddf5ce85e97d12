# registry_core/audit/admin.py
from django.contrib import admin

from registry_core.audit.models import ActivityLog


@admin.register(ActivityLog)
class ActivityLogAdmin(admin.ModelAdmin):
    list_display = ("action", "entity_type", "entity_id", "user", "ip_address", "created_at")
    list_filter = ("action", "entity_type")
    search_fields = ("action", "entity_type", "entity_id", "user__email", "page_path")
    readonly_fields = [f.name for f in ActivityLog._meta.fields]
    ordering = ("-created_at",)

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
