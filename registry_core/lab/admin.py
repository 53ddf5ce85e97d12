# registry_core/lab/admin.py
from django.contrib import admin

from registry_core.lab.models import LabResult, LabTest


class LabResultInline(admin.TabularInline):
    model = LabResult
    extra = 0


@admin.register(LabTest)
class LabTestAdmin(admin.ModelAdmin):
    list_display = ("test_name", "patient", "priority", "status", "ordered_at", "completed_at")
    list_filter = ("status", "priority", "test_type")
    search_fields = ("test_name", "patient__patient_number", "patient__last_name")
    inlines = [LabResultInline]
