# registry_core/consultations/models.py
from django.conf import settings
from django.db import models
from django.utils import timezone

from registry_core.common.models import RegistryModel


class ConsultationStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    AWAITING_LAB_RESULTS = "awaiting_lab_results", "Awaiting lab results"
    LAB_RESULTS_REVIEWED = "lab_results_reviewed", "Lab results reviewed"
    REFERRED_TO_SURGERY = "referred_to_surgery", "Referred to surgery"
    REFERRED_TO_PRESCRIPTION = "referred_to_prescription", "Referred to prescription"
    COMPLETED = "completed", "Completed"


class Consultation(RegistryModel):
    """
    Doctor consultation. status drives the next step of the workflow;
    legal moves live in consultations.services.CONSULTATION_TRANSITIONS.
    """
    appointment = models.ForeignKey(
        "appointments.Appointment",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="consultations",
    )
    patient = models.ForeignKey("patients.Patient", on_delete=models.CASCADE, related_name="consultations")
    doctor = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="consultations",
    )
    consultation_date = models.DateTimeField(default=timezone.now, db_index=True)

    chief_complaint = models.TextField(blank=True, default="")
    clinical_findings = models.TextField(blank=True, default="")
    diagnosis = models.TextField(blank=True, default="")
    treatment_plan = models.TextField(blank=True, default="")

    requires_lab_tests = models.BooleanField(default=False)
    lab_tests_ordered = models.JSONField(default=list, blank=True)
    lab_results_reviewed = models.BooleanField(default=False)
    requires_surgery = models.BooleanField(default=False)
    surgery_referral_notes = models.TextField(blank=True, default="")
    requires_prescription = models.BooleanField(default=False)

    notes = models.TextField(blank=True, default="")
    status = models.CharField(
        max_length=32,
        choices=ConsultationStatus.choices,
        default=ConsultationStatus.PENDING,
        db_index=True,
    )

    class Meta:
        db_table = "doctor_consultations"

    def __str__(self) -> str:
        return f"Consultation {self.id} ({self.status})"
