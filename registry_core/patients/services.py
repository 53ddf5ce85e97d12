# registry_core/patients/services.py
from __future__ import annotations

import logging
import re
from uuid import UUID

from django.db import IntegrityError, transaction
from django.utils import timezone

from registry_core.audit.models import ActivityAction
from registry_core.audit.services import AuditService
from registry_core.patients.models import Patient

logger = logging.getLogger(__name__)

PATIENT_NUMBER_PREFIX = "PT-"
PATIENT_NUMBER_RE = re.compile(r"^PT-([0-9]+)$")

# Everything a caller may set; patient_number/registered_by are server-owned.
EDITABLE_FIELDS = {
    f.name
    for f in Patient._meta.get_fields()
    if getattr(f, "concrete", False)
    and not f.auto_created
    and f.name not in {"id", "patient_number", "registered_by", "created_at", "updated_at"}
}


def next_patient_number() -> str:
    """
    Max numeric suffix of existing PT-<digits> numbers + 1, zero-padded to 6.
    Malformed numbers are ignored.
    """
    highest = 0
    for number in Patient.objects.filter(patient_number__startswith=PATIENT_NUMBER_PREFIX).values_list(
        "patient_number", flat=True
    ):
        m = PATIENT_NUMBER_RE.match(number)
        if m:
            highest = max(highest, int(m.group(1)))
    return f"{PATIENT_NUMBER_PREFIX}{highest + 1:06d}"


class PatientService:
    @staticmethod
    @transaction.atomic
    def register_patient(*, actor_user_id: int | None, data: dict) -> Patient:
        fields = {k: v for k, v in (data or {}).items() if k in EDITABLE_FIELDS}

        if fields.get("consent_treatment") and not fields.get("consent_date"):
            fields["consent_date"] = timezone.now()

        try:
            with transaction.atomic():
                patient = Patient.objects.create(
                    patient_number=next_patient_number(),
                    registered_by_id=actor_user_id,
                    **fields,
                )
        except IntegrityError:
            # Two registrations raced for the same number.
            raise ValueError("Patient number already taken; please retry.")

        AuditService.log(
            action=ActivityAction.CREATE,
            entity_type="Patient",
            entity_id=patient.id,
            actor_user_id=actor_user_id,
            details={"patient_number": patient.patient_number},
        )
        logger.info("patient registered id=%s number=%s", patient.id, patient.patient_number)
        return patient

    @staticmethod
    @transaction.atomic
    def update_patient(*, actor_user_id: int | None, patient_id: UUID, data: dict) -> Patient:
        patient = Patient.objects.select_for_update().get(id=patient_id)

        updates = {k: v for k, v in (data or {}).items() if k in EDITABLE_FIELDS}
        if updates.get("consent_treatment") and not patient.consent_treatment and not updates.get("consent_date"):
            updates["consent_date"] = timezone.now()

        for k, v in updates.items():
            setattr(patient, k, v)
        patient.save()

        AuditService.log(
            action=ActivityAction.UPDATE,
            entity_type="Patient",
            entity_id=patient.id,
            actor_user_id=actor_user_id,
            details={"updated_fields": sorted(updates.keys())},
        )
        return patient

    @staticmethod
    @transaction.atomic
    def delete_patient(*, actor_user_id: int | None, patient_id: UUID) -> None:
        patient = Patient.objects.get(id=patient_id)
        number = patient.patient_number
        patient.delete()

        AuditService.log(
            action=ActivityAction.DELETE,
            entity_type="Patient",
            entity_id=patient_id,
            actor_user_id=actor_user_id,
            details={"patient_number": number},
        )
        logger.info("patient deleted id=%s number=%s", patient_id, number)
