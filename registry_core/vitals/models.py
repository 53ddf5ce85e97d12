# registry_core/vitals/models.py
from decimal import Decimal

from django.conf import settings
from django.db import models
from django.utils import timezone

from registry_core.common.models import RegistryModel


class Vitals(RegistryModel):
    patient = models.ForeignKey("patients.Patient", on_delete=models.CASCADE, related_name="vitals")

    systolic_bp = models.PositiveSmallIntegerField()
    diastolic_bp = models.PositiveSmallIntegerField()
    heart_rate = models.PositiveSmallIntegerField()
    oxygen_saturation = models.PositiveSmallIntegerField(null=True, blank=True)
    temperature = models.DecimalField(max_digits=4, decimal_places=1, null=True, blank=True)
    weight = models.DecimalField(max_digits=5, decimal_places=1, null=True, blank=True)  # kg
    height = models.DecimalField(max_digits=5, decimal_places=1, null=True, blank=True)  # cm
    notes = models.TextField(blank=True, default="")

    recorded_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="recorded_vitals",
    )
    recorded_at = models.DateTimeField(default=timezone.now, db_index=True)

    class Meta:
        db_table = "vitals_vitals"
        verbose_name_plural = "vitals"
        indexes = [models.Index(fields=["patient", "recorded_at"])]

    def __str__(self) -> str:
        return f"{self.systolic_bp}/{self.diastolic_bp} HR {self.heart_rate}"

    @property
    def bmi(self) -> Decimal | None:
        if not self.weight or not self.height:
            return None
        metres = Decimal(self.height) / Decimal(100)
        return (Decimal(self.weight) / (metres * metres)).quantize(Decimal("0.1"))
