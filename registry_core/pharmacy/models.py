# registry_core/pharmacy/models.py
from django.conf import settings
from django.db import models

from registry_core.common.models import RegistryModel


class PrescriptionStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    DISPENSED = "dispensed", "Dispensed"
    CANCELLED = "cancelled", "Cancelled"


class Prescription(RegistryModel):
    patient = models.ForeignKey("patients.Patient", on_delete=models.CASCADE, related_name="prescriptions")
    prescribed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="prescriptions_written",
    )
    consultation = models.ForeignKey(
        "consultations.Consultation",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="prescriptions",
    )
    status = models.CharField(
        max_length=16,
        choices=PrescriptionStatus.choices,
        default=PrescriptionStatus.PENDING,
        db_index=True,
    )
    notes = models.TextField(blank=True, default="")

    dispensed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="prescriptions_dispensed",
    )
    dispensed_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = "pharmacy_prescription"

    def __str__(self) -> str:
        return f"Prescription {self.id} ({self.status})"


class PrescriptionItem(RegistryModel):
    prescription = models.ForeignKey(Prescription, on_delete=models.CASCADE, related_name="items")
    medication_name = models.CharField(max_length=255)
    dosage = models.CharField(max_length=128)
    frequency = models.CharField(max_length=128, blank=True, default="")
    duration = models.CharField(max_length=128, blank=True, default="")
    quantity = models.PositiveIntegerField(null=True, blank=True)
    instructions = models.TextField(blank=True, default="")

    class Meta:
        db_table = "pharmacy_prescription_item"
        ordering = ["created_at"]

    def __str__(self) -> str:
        return f"{self.medication_name} {self.dosage}"
