# registry_core/pharmacy/services.py
from __future__ import annotations

import logging
from typing import Iterable
from uuid import UUID

from django.db import transaction
from django.utils import timezone

from registry_core.audit.models import ActivityAction
from registry_core.audit.services import AuditService
from registry_core.common.events import publish
from registry_core.common.transitions import ensure_transition
from registry_core.consultations.models import Consultation, ConsultationStatus
from registry_core.consultations.services import ConsultationService
from registry_core.patients.models import Patient
from registry_core.pharmacy.models import Prescription, PrescriptionItem, PrescriptionStatus

logger = logging.getLogger(__name__)

PRESCRIPTION_TRANSITIONS = {
    PrescriptionStatus.PENDING: {PrescriptionStatus.DISPENSED, PrescriptionStatus.CANCELLED},
}

ITEM_FIELDS = ("medication_name", "dosage", "frequency", "duration", "quantity", "instructions")


def _is_blank_row(item: dict) -> bool:
    return not any(str(item.get(k) or "").strip() for k in ITEM_FIELDS)


class PrescriptionService:
    @staticmethod
    @transaction.atomic
    def create_prescription(
        *,
        patient_id: UUID,
        items: Iterable[dict],
        actor_user_id: int | None,
        notes: str = "",
        consultation_id: UUID | None = None,
    ) -> Prescription:
        rows = [i for i in items if not _is_blank_row(i)]
        for row in rows:
            if not str(row.get("medication_name") or "").strip() or not str(row.get("dosage") or "").strip():
                raise ValueError("Each medication needs a name and a dosage.")
        if not rows:
            raise ValueError("At least one medication with a name and dosage is required.")

        patient = Patient.objects.get(id=patient_id)
        consultation = None
        if consultation_id is not None:
            consultation = Consultation.objects.get(id=consultation_id)
            if consultation.patient_id != patient.id:
                raise ValueError("Consultation belongs to a different patient.")

        rx = Prescription.objects.create(
            patient=patient,
            prescribed_by_id=actor_user_id,
            consultation_id=consultation_id,
            notes=notes or "",
        )
        PrescriptionItem.objects.bulk_create(
            [
                PrescriptionItem(
                    prescription=rx,
                    medication_name=r["medication_name"].strip(),
                    dosage=r["dosage"].strip(),
                    frequency=r.get("frequency") or "",
                    duration=r.get("duration") or "",
                    quantity=r.get("quantity"),
                    instructions=r.get("instructions") or "",
                )
                for r in rows
            ]
        )

        if consultation is not None:
            if consultation.status != ConsultationStatus.COMPLETED:
                ConsultationService.complete(
                    consultation_id=consultation_id,
                    actor_user_id=actor_user_id,
                    requires_prescription=True,
                )
            elif not consultation.requires_prescription:
                consultation.requires_prescription = True
                consultation.save(update_fields=["requires_prescription", "updated_at"])

        AuditService.log(
            action=ActivityAction.CREATE,
            entity_type="Prescription",
            entity_id=rx.id,
            actor_user_id=actor_user_id,
            details={"patient_id": str(patient.id), "items": len(rows)},
        )
        publish("prescription.created", {"prescription_id": rx.id, "patient_name": patient.full_name})
        return rx

    @staticmethod
    def _set_status(rx: Prescription, target: str, *, actor_user_id: int | None) -> None:
        previous = rx.status
        ensure_transition(PRESCRIPTION_TRANSITIONS, entity="prescription", current=previous, target=target)
        rx.status = target
        AuditService.log(
            action=ActivityAction.STATUS_CHANGE,
            entity_type="Prescription",
            entity_id=rx.id,
            actor_user_id=actor_user_id,
            details={"from": previous, "to": target},
        )
        logger.info("prescription %s %s -> %s", rx.id, previous, target)

    @staticmethod
    @transaction.atomic
    def dispense(*, prescription_id: UUID, actor_user_id: int | None) -> Prescription:
        rx = Prescription.objects.select_for_update().get(id=prescription_id)
        PrescriptionService._set_status(rx, PrescriptionStatus.DISPENSED, actor_user_id=actor_user_id)
        rx.dispensed_by_id = actor_user_id
        rx.dispensed_at = timezone.now()
        rx.save(update_fields=["status", "dispensed_by", "dispensed_at", "updated_at"])
        return rx

    @staticmethod
    @transaction.atomic
    def cancel(*, prescription_id: UUID, actor_user_id: int | None) -> Prescription:
        rx = Prescription.objects.select_for_update().get(id=prescription_id)
        PrescriptionService._set_status(rx, PrescriptionStatus.CANCELLED, actor_user_id=actor_user_id)
        rx.save(update_fields=["status", "updated_at"])
        return rx
