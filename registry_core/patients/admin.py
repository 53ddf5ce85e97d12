# registry_core/patients/admin.py
from django.contrib import admin

from registry_core.patients.models import Patient


@admin.register(Patient)
class PatientAdmin(admin.ModelAdmin):
    list_display = ("patient_number", "first_name", "last_name", "gender", "status", "created_at")
    list_filter = ("status", "gender")
    search_fields = ("patient_number", "first_name", "last_name", "phone", "national_id")
    ordering = ("-created_at",)
