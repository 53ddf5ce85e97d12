# registry_core/vitals/services.py
from __future__ import annotations

import logging
from uuid import UUID

from django.db import transaction
from django.utils import timezone

from registry_core.audit.models import ActivityAction
from registry_core.audit.services import AuditService
from registry_core.patients.models import Patient
from registry_core.vitals.models import Vitals

logger = logging.getLogger(__name__)

# field -> (min, max, label)
VITAL_RANGES = {
    "systolic_bp": (50, 300, "Systolic BP"),
    "diastolic_bp": (30, 200, "Diastolic BP"),
    "heart_rate": (20, 250, "Heart rate"),
    "oxygen_saturation": (0, 100, "Oxygen saturation"),
    "temperature": (30, 45, "Temperature"),
    "weight": (0, 500, "Weight"),
    "height": (0, 300, "Height"),
}


def validate_vitals(data: dict) -> None:
    for field, (lo, hi, label) in VITAL_RANGES.items():
        value = data.get(field)
        if value is None:
            continue
        if value < lo or value > hi:
            raise ValueError(f"{label} must be between {lo} and {hi}.")

    if data["diastolic_bp"] >= data["systolic_bp"]:
        raise ValueError("Diastolic BP must be lower than systolic BP.")


class VitalsService:
    @staticmethod
    @transaction.atomic
    def record_vitals(
        *,
        patient_id: UUID,
        actor_user_id: int | None,
        systolic_bp: int,
        diastolic_bp: int,
        heart_rate: int,
        oxygen_saturation: int | None = None,
        temperature=None,
        weight=None,
        height=None,
        notes: str = "",
        recorded_at=None,
    ) -> Vitals:
        values = {
            "systolic_bp": systolic_bp,
            "diastolic_bp": diastolic_bp,
            "heart_rate": heart_rate,
            "oxygen_saturation": oxygen_saturation,
            "temperature": temperature,
            "weight": weight,
            "height": height,
        }
        validate_vitals(values)

        patient = Patient.objects.get(id=patient_id)
        vitals = Vitals.objects.create(
            patient=patient,
            recorded_by_id=actor_user_id,
            notes=notes or "",
            recorded_at=recorded_at or timezone.now(),
            **values,
        )

        AuditService.log(
            action=ActivityAction.CREATE,
            entity_type="Vitals",
            entity_id=vitals.id,
            actor_user_id=actor_user_id,
            details={"patient_id": str(patient.id), "bp": f"{systolic_bp}/{diastolic_bp}"},
        )
        return vitals

    @staticmethod
    @transaction.atomic
    def delete_vitals(*, vitals_id: UUID, actor_user_id: int | None) -> None:
        vitals = Vitals.objects.get(id=vitals_id)
        patient_id = vitals.patient_id
        vitals.delete()
        AuditService.log(
            action=ActivityAction.DELETE,
            entity_type="Vitals",
            entity_id=vitals_id,
            actor_user_id=actor_user_id,
            details={"patient_id": str(patient_id)},
        )
