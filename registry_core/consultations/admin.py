# registry_core/consultations/admin.py
from django.contrib import admin

from registry_core.consultations.models import Consultation


@admin.register(Consultation)
class ConsultationAdmin(admin.ModelAdmin):
    list_display = ("consultation_date", "patient", "doctor", "status")
    list_filter = ("status", "requires_lab_tests", "requires_surgery", "requires_prescription")
    search_fields = ("patient__patient_number", "patient__last_name", "diagnosis")
