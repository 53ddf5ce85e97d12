# registry_core/surgery/models.py
from django.conf import settings
from django.db import models
from django.utils import timezone

from registry_core.common.models import RegistryModel


class SurgeryStatus(models.TextChoices):
    SCHEDULED = "scheduled", "Scheduled"
    PRE_OP_COMPLETE = "pre_op_complete", "Pre-op complete"
    IN_PROGRESS = "in_progress", "In progress"
    SURGERY_COMPLETE = "surgery_complete", "Surgery complete"
    POST_OP_CARE = "post_op_care", "Post-op care"
    COMPLETED = "completed", "Completed"
    CANCELLED = "cancelled", "Cancelled"


class Surgery(RegistryModel):
    patient = models.ForeignKey("patients.Patient", on_delete=models.CASCADE, related_name="surgeries")
    surgeon = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="surgeries",
    )
    consultation = models.ForeignKey(
        "consultations.Consultation",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="surgeries",
    )

    surgery_type = models.CharField(max_length=64)
    surgery_name = models.CharField(max_length=255)
    scheduled_date = models.DateField(db_index=True)
    scheduled_time = models.TimeField(null=True, blank=True)
    duration_minutes = models.PositiveIntegerField(default=120)
    operating_room = models.CharField(max_length=32, blank=True, default="")

    # Pre-op
    pre_op_assessment = models.TextField(blank=True, default="")
    pre_op_tests_completed = models.BooleanField(default=False)
    who_checklist_completed = models.BooleanField(default=False)
    who_checklist = models.JSONField(default=dict, blank=True)

    # Intra-op / post-op
    intra_op_notes = models.TextField(blank=True, default="")
    post_op_notes = models.TextField(blank=True, default="")
    complications = models.TextField(blank=True, default="")

    status = models.CharField(
        max_length=32,
        choices=SurgeryStatus.choices,
        default=SurgeryStatus.SCHEDULED,
        db_index=True,
    )

    class Meta:
        db_table = "surgery_surgery"
        verbose_name_plural = "surgeries"

    def __str__(self) -> str:
        return f"{self.surgery_name} {self.scheduled_date} ({self.status})"


class SurgicalConsent(RegistryModel):
    surgery = models.ForeignKey(Surgery, on_delete=models.CASCADE, related_name="consents")
    patient = models.ForeignKey("patients.Patient", on_delete=models.CASCADE, related_name="surgical_consents")
    consent_type = models.CharField(max_length=64)
    consent_details = models.TextField(blank=True, default="")
    risks_explained = models.BooleanField(default=False)
    alternatives_explained = models.BooleanField(default=False)
    patient_signature = models.CharField(max_length=255)
    witness_name = models.CharField(max_length=255, blank=True, default="")
    witness_signature = models.CharField(max_length=255, blank=True, default="")
    consented_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="recorded_consents",
    )
    consented_at = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = "surgery_consent"

    def __str__(self) -> str:
        return f"{self.consent_type} consent for {self.surgery_id}"
