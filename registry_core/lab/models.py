# registry_core/lab/models.py
from django.conf import settings
from django.db import models
from django.utils import timezone

from registry_core.common.models import RegistryModel


class LabPriority(models.TextChoices):
    ROUTINE = "routine", "Routine"
    URGENT = "urgent", "Urgent"
    STAT = "stat", "STAT"


class LabTestStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    IN_PROGRESS = "in_progress", "In progress"
    COMPLETED = "completed", "Completed"
    CANCELLED = "cancelled", "Cancelled"


class LabTest(RegistryModel):
    patient = models.ForeignKey("patients.Patient", on_delete=models.CASCADE, related_name="lab_tests")
    ordered_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="ordered_lab_tests",
    )
    consultation = models.ForeignKey(
        "consultations.Consultation",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="lab_tests",
    )

    test_type = models.CharField(max_length=64)
    test_name = models.CharField(max_length=255)
    priority = models.CharField(max_length=16, choices=LabPriority.choices, default=LabPriority.ROUTINE)
    status = models.CharField(
        max_length=16,
        choices=LabTestStatus.choices,
        default=LabTestStatus.PENDING,
        db_index=True,
    )
    notes = models.TextField(blank=True, default="")

    ordered_at = models.DateTimeField(default=timezone.now, db_index=True)
    completed_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = "lab_test"
        indexes = [models.Index(fields=["status", "priority", "ordered_at"])]

    def __str__(self) -> str:
        return f"{self.test_name} ({self.status})"


class LabResult(RegistryModel):
    lab_test = models.ForeignKey(LabTest, on_delete=models.CASCADE, related_name="results")
    parameter_name = models.CharField(max_length=128)
    value = models.CharField(max_length=128)
    unit = models.CharField(max_length=32, blank=True, default="")
    reference_range = models.CharField(max_length=64, blank=True, default="")
    is_abnormal = models.BooleanField(default=False)
    entered_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="entered_lab_results",
    )
    notes = models.TextField(blank=True, default="")

    class Meta:
        db_table = "lab_result"
        ordering = ["created_at"]

    def __str__(self) -> str:
        return f"{self.parameter_name}={self.value}{self.unit}"
