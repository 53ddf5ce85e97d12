# registry_core/inpatient/admin.py
from django.contrib import admin

from registry_core.inpatient.models import IcuAdmission, IcuProgressNote, WardAdmission


class IcuProgressNoteInline(admin.StackedInline):
    model = IcuProgressNote
    extra = 0


@admin.register(IcuAdmission)
class IcuAdmissionAdmin(admin.ModelAdmin):
    list_display = ("bed_number", "patient", "status", "admitted_at", "discharged_at")
    list_filter = ("status",)
    search_fields = ("bed_number", "patient__patient_number", "patient__last_name")
    inlines = [IcuProgressNoteInline]


@admin.register(WardAdmission)
class WardAdmissionAdmin(admin.ModelAdmin):
    list_display = ("bed_number", "patient", "source", "status", "admitted_at", "discharged_at")
    list_filter = ("status", "source")
    search_fields = ("bed_number", "patient__patient_number", "patient__last_name")
