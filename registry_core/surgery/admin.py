# registry_core/surgery/admin.py
from django.contrib import admin

from registry_core.surgery.models import Surgery, SurgicalConsent


class SurgicalConsentInline(admin.StackedInline):
    model = SurgicalConsent
    extra = 0


@admin.register(Surgery)
class SurgeryAdmin(admin.ModelAdmin):
    list_display = ("surgery_name", "patient", "scheduled_date", "operating_room", "status")
    list_filter = ("status", "surgery_type")
    search_fields = ("surgery_name", "patient__patient_number", "patient__last_name")
    inlines = [SurgicalConsentInline]
