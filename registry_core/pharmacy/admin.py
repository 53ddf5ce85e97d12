# registry_core/pharmacy/admin.py
from django.contrib import admin

from registry_core.pharmacy.models import Prescription, PrescriptionItem


class PrescriptionItemInline(admin.TabularInline):
    model = PrescriptionItem
    extra = 0


@admin.register(Prescription)
class PrescriptionAdmin(admin.ModelAdmin):
    list_display = ("id", "patient", "status", "created_at", "dispensed_at")
    list_filter = ("status",)
    search_fields = ("patient__patient_number", "patient__last_name", "items__medication_name")
    inlines = [PrescriptionItemInline]
