# registry_core/inpatient/models.py
from django.conf import settings
from django.db import models
from django.db.models import Q
from django.utils import timezone

from registry_core.common.models import RegistryModel


class AdmissionStatus(models.TextChoices):
    ADMITTED = "admitted", "Admitted"
    DISCHARGED = "discharged", "Discharged"


def _active_stay_constraints(prefix: str) -> list[models.UniqueConstraint]:
    admitted = Q(status=AdmissionStatus.ADMITTED)
    return [
        models.UniqueConstraint(
            fields=["bed_number"],
            condition=admitted & ~Q(bed_number=""),
            name=f"uq_{prefix}_occupied_bed",
        ),
        models.UniqueConstraint(
            fields=["patient"],
            condition=admitted,
            name=f"uq_{prefix}_active_stay_per_patient",
        ),
    ]


class RecoveryStatus(models.TextChoices):
    CRITICAL = "critical", "Critical"
    SERIOUS = "serious", "Serious"
    STABLE = "stable", "Stable"
    IMPROVING = "improving", "Improving"


class WardSource(models.TextChoices):
    POST_OP = "post_op", "Post-op"
    ICU_DISCHARGE = "icu_discharge", "ICU discharge"
    DIRECT = "direct", "Direct"


class IcuAdmission(RegistryModel):
    patient = models.ForeignKey("patients.Patient", on_delete=models.CASCADE, related_name="icu_admissions")
    surgery = models.ForeignKey(
        "surgery.Surgery",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="icu_admissions",
    )
    admitted_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="icu_admissions",
    )
    bed_number = models.CharField(max_length=16, db_index=True)
    admission_reason = models.TextField(blank=True, default="")
    status = models.CharField(
        max_length=16,
        choices=AdmissionStatus.choices,
        default=AdmissionStatus.ADMITTED,
        db_index=True,
    )
    admitted_at = models.DateTimeField(default=timezone.now)
    discharged_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = "inpatient_icu_admission"
        constraints = _active_stay_constraints("icu")

    def __str__(self) -> str:
        return f"ICU {self.bed_number} ({self.status})"


class IcuProgressNote(RegistryModel):
    icu_admission = models.ForeignKey(IcuAdmission, on_delete=models.CASCADE, related_name="progress_notes")
    recorded_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="icu_progress_notes",
    )
    vitals_summary = models.TextField(blank=True, default="")
    medications_given = models.TextField(blank=True, default="")
    observations = models.TextField(blank=True, default="")
    complications = models.TextField(blank=True, default="")
    recovery_status = models.CharField(max_length=16, choices=RecoveryStatus.choices, default=RecoveryStatus.STABLE)
    plan = models.TextField(blank=True, default="")

    class Meta:
        db_table = "inpatient_icu_progress_note"
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"Note {self.created_at:%Y-%m-%d %H:%M} ({self.recovery_status})"


class WardAdmission(RegistryModel):
    patient = models.ForeignKey("patients.Patient", on_delete=models.CASCADE, related_name="ward_admissions")
    surgery = models.ForeignKey(
        "surgery.Surgery",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="ward_admissions",
    )
    icu_admission = models.ForeignKey(
        IcuAdmission,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="step_downs",
    )
    admitted_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="ward_admissions",
    )
    bed_number = models.CharField(max_length=16, blank=True, default="", db_index=True)
    admission_reason = models.TextField(blank=True, default="")
    source = models.CharField(max_length=16, choices=WardSource.choices, default=WardSource.DIRECT)
    status = models.CharField(
        max_length=16,
        choices=AdmissionStatus.choices,
        default=AdmissionStatus.ADMITTED,
        db_index=True,
    )
    admitted_at = models.DateTimeField(default=timezone.now)
    discharged_at = models.DateTimeField(null=True, blank=True)
    discharge_notes = models.TextField(blank=True, default="")

    class Meta:
        db_table = "inpatient_ward_admission"
        constraints = _active_stay_constraints("ward")

    def __str__(self) -> str:
        return f"Ward {self.bed_number or '-'} ({self.status})"
