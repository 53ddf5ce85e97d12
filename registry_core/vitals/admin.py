# registry_core/vitals/admin.py
from django.contrib import admin

from registry_core.vitals.models import Vitals


@admin.register(Vitals)
class VitalsAdmin(admin.ModelAdmin):
    list_display = ("patient", "systolic_bp", "diastolic_bp", "heart_rate", "recorded_at")
    search_fields = ("patient__patient_number", "patient__last_name")
    ordering = ("-recorded_at",)
