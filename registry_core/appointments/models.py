# registry_core/appointments/models.py
from django.conf import settings
from django.db import models
from django.db.models import Q

from registry_core.common.models import RegistryModel


class DayOfWeek(models.IntegerChoices):
    SUNDAY = 0, "Sunday"
    MONDAY = 1, "Monday"
    TUESDAY = 2, "Tuesday"
    WEDNESDAY = 3, "Wednesday"
    THURSDAY = 4, "Thursday"
    FRIDAY = 5, "Friday"
    SATURDAY = 6, "Saturday"


class DoctorSchedule(RegistryModel):
    """A recurring weekly availability window for one doctor."""
    doctor = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="schedules")
    day_of_week = models.PositiveSmallIntegerField(choices=DayOfWeek.choices)
    start_time = models.TimeField()
    end_time = models.TimeField()
    is_available = models.BooleanField(default=True)

    class Meta:
        db_table = "appointments_doctor_schedule"
        ordering = ["day_of_week", "start_time"]
        indexes = [models.Index(fields=["doctor", "day_of_week"])]

    def __str__(self) -> str:
        return f"{self.doctor_id} {self.get_day_of_week_display()} {self.start_time:%H:%M}-{self.end_time:%H:%M}"


class AppointmentStatus(models.TextChoices):
    SCHEDULED = "scheduled", "Scheduled"
    IN_PROGRESS = "in_progress", "In progress"
    COMPLETED = "completed", "Completed"
    CANCELLED = "cancelled", "Cancelled"


class Appointment(RegistryModel):
    patient = models.ForeignKey("patients.Patient", on_delete=models.CASCADE, related_name="appointments")
    doctor = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="doctor_appointments",
    )
    scheduled_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="scheduled_appointments",
    )
    appointment_date = models.DateField(db_index=True)
    appointment_time = models.TimeField()
    duration_minutes = models.PositiveIntegerField(default=30)
    appointment_type = models.CharField(max_length=64, default="consultation")
    status = models.CharField(
        max_length=16,
        choices=AppointmentStatus.choices,
        default=AppointmentStatus.SCHEDULED,
        db_index=True,
    )
    notes = models.TextField(blank=True, default="")

    class Meta:
        db_table = "appointments_appointment"
        indexes = [models.Index(fields=["doctor", "appointment_date", "appointment_time"])]
        constraints = [
            models.UniqueConstraint(
                fields=["doctor", "appointment_date", "appointment_time"],
                condition=~Q(status=AppointmentStatus.CANCELLED),
                name="uq_appointment_doctor_slot",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.appointment_date} {self.appointment_time:%H:%M} ({self.status})"


class FollowUpStatus(models.TextChoices):
    SCHEDULED = "scheduled", "Scheduled"
    COMPLETED = "completed", "Completed"
    CANCELLED = "cancelled", "Cancelled"


class FollowUp(RegistryModel):
    patient = models.ForeignKey("patients.Patient", on_delete=models.CASCADE, related_name="follow_ups")
    doctor = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="doctor_follow_ups",
    )
    scheduled_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="scheduled_follow_ups",
    )
    scheduled_date = models.DateField(db_index=True)
    reason = models.CharField(max_length=255)
    notes = models.TextField(blank=True, default="")
    status = models.CharField(
        max_length=16,
        choices=FollowUpStatus.choices,
        default=FollowUpStatus.SCHEDULED,
        db_index=True,
    )
    completed_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = "appointments_follow_up"

    def __str__(self) -> str:
        return f"{self.scheduled_date} {self.reason} ({self.status})"
