# registry_core/appointments/admin.py
from django.contrib import admin

from registry_core.appointments.models import Appointment, DoctorSchedule, FollowUp


@admin.register(DoctorSchedule)
class DoctorScheduleAdmin(admin.ModelAdmin):
    list_display = ("doctor", "day_of_week", "start_time", "end_time", "is_available")
    list_filter = ("day_of_week", "is_available")


@admin.register(Appointment)
class AppointmentAdmin(admin.ModelAdmin):
    list_display = ("appointment_date", "appointment_time", "patient", "doctor", "appointment_type", "status")
    list_filter = ("status", "appointment_type")
    search_fields = ("patient__patient_number", "patient__last_name")
    ordering = ("-appointment_date", "-appointment_time")


@admin.register(FollowUp)
class FollowUpAdmin(admin.ModelAdmin):
    list_display = ("scheduled_date", "patient", "reason", "status", "completed_at")
    list_filter = ("status",)
    search_fields = ("patient__patient_number", "reason")
