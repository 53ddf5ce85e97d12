# registry_core/surgery/services.py
from __future__ import annotations

import logging
from datetime import date, time
from uuid import UUID

from django.db import transaction
from django.utils import timezone

from registry_core.audit.models import ActivityAction
from registry_core.audit.services import AuditService
from registry_core.common.transitions import StateConflict, ensure_transition
from registry_core.consultations.models import Consultation, ConsultationStatus
from registry_core.consultations.services import ConsultationService
from registry_core.patients.models import Patient
from registry_core.surgery import checklists
from registry_core.surgery.models import Surgery, SurgeryStatus, SurgicalConsent

logger = logging.getLogger(__name__)

S = SurgeryStatus

SURGERY_TRANSITIONS = {
    S.SCHEDULED: {S.PRE_OP_COMPLETE, S.CANCELLED},
    S.PRE_OP_COMPLETE: {S.IN_PROGRESS, S.CANCELLED},
    S.IN_PROGRESS: {S.SURGERY_COMPLETE},
    S.SURGERY_COMPLETE: {S.POST_OP_CARE},
    S.POST_OP_CARE: {S.COMPLETED},
}

NOTE_FIELDS = ("pre_op_assessment", "intra_op_notes", "post_op_notes", "complications", "operating_room")


def _lock(surgery_id: UUID) -> Surgery:
    return Surgery.objects.select_for_update().get(id=surgery_id)


def _transition(surgery: Surgery, target: str, *, actor_user_id: int | None, details: dict | None = None) -> None:
    previous = surgery.status
    ensure_transition(SURGERY_TRANSITIONS, entity="surgery", current=previous, target=target)
    surgery.status = target

    AuditService.log(
        action=ActivityAction.STATUS_CHANGE,
        entity_type="Surgery",
        entity_id=surgery.id,
        actor_user_id=actor_user_id,
        details={"from": previous, "to": target, **(details or {})},
    )
    logger.info("surgery %s %s -> %s", surgery.id, previous, target)


def _checklist_record(entries: list[dict], actor_user_id: int | None) -> dict:
    return {"items": entries, "completed_at": timezone.now().isoformat(), "completed_by": actor_user_id}


class SurgeryService:
    @staticmethod
    @transaction.atomic
    def schedule_surgery(
        *,
        patient_id: UUID,
        surgery_type: str,
        surgery_name: str,
        scheduled_date: date,
        actor_user_id: int | None,
        surgeon_id: int | None = None,
        scheduled_time: time | None = None,
        duration_minutes: int = 120,
        operating_room: str = "",
        pre_op_assessment: str = "",
        consultation_id: UUID | None = None,
    ) -> Surgery:
        patient = Patient.objects.get(id=patient_id)

        consultation = None
        if consultation_id is not None:
            consultation = Consultation.objects.get(id=consultation_id)
            if consultation.patient_id != patient.id:
                raise ValueError("Consultation belongs to a different patient.")

        surgery = Surgery.objects.create(
            patient=patient,
            surgeon_id=surgeon_id or actor_user_id,
            consultation=consultation,
            surgery_type=surgery_type,
            surgery_name=surgery_name,
            scheduled_date=scheduled_date,
            scheduled_time=scheduled_time,
            duration_minutes=duration_minutes,
            operating_room=operating_room or "",
            pre_op_assessment=pre_op_assessment or "",
        )

        if consultation is not None and consultation.status != ConsultationStatus.COMPLETED:
            ConsultationService.complete(
                consultation_id=consultation.id,
                actor_user_id=actor_user_id,
                requires_surgery=True,
            )

        AuditService.log(
            action=ActivityAction.CREATE,
            entity_type="Surgery",
            entity_id=surgery.id,
            actor_user_id=actor_user_id,
            details={"patient_id": str(patient.id), "surgery_name": surgery_name},
        )
        return surgery

    @staticmethod
    @transaction.atomic
    def record_consent(
        *,
        surgery_id: UUID,
        consent_type: str,
        patient_signature: str,
        actor_user_id: int | None,
        consent_details: str = "",
        risks_explained: bool = False,
        alternatives_explained: bool = False,
        witness_name: str = "",
        witness_signature: str = "",
    ) -> SurgicalConsent:
        surgery = Surgery.objects.get(id=surgery_id)
        if surgery.status in (S.COMPLETED, S.CANCELLED):
            raise StateConflict("Consent cannot be recorded for a closed surgery.")
        if not risks_explained:
            raise ValueError("Risks must be explained before consent is recorded.")

        consent = SurgicalConsent.objects.create(
            surgery=surgery,
            patient_id=surgery.patient_id,
            consent_type=consent_type,
            consent_details=consent_details or "",
            risks_explained=risks_explained,
            alternatives_explained=alternatives_explained,
            patient_signature=patient_signature,
            witness_name=witness_name or "",
            witness_signature=witness_signature or "",
            consented_by_id=actor_user_id,
        )
        AuditService.log(
            action=ActivityAction.CREATE,
            entity_type="SurgicalConsent",
            entity_id=consent.id,
            actor_user_id=actor_user_id,
            details={"surgery_id": str(surgery.id), "consent_type": consent_type},
        )
        return consent

    @staticmethod
    @transaction.atomic
    def complete_pre_op(
        *,
        surgery_id: UUID,
        sign_in: list[bool],
        time_out: list[bool],
        actor_user_id: int | None,
        pre_op_assessment: str | None = None,
    ) -> Surgery:
        surgery = _lock(surgery_id)
        sign_in_entries = checklists.validate_phase(checklists.SIGN_IN, sign_in)
        time_out_entries = checklists.validate_phase(checklists.TIME_OUT, time_out)

        _transition(surgery, S.PRE_OP_COMPLETE, actor_user_id=actor_user_id)

        record = dict(surgery.who_checklist or {})
        record[checklists.SIGN_IN] = _checklist_record(sign_in_entries, actor_user_id)
        record[checklists.TIME_OUT] = _checklist_record(time_out_entries, actor_user_id)
        surgery.who_checklist = record
        surgery.who_checklist_completed = True
        surgery.pre_op_tests_completed = True
        if pre_op_assessment:
            surgery.pre_op_assessment = pre_op_assessment
        surgery.save()
        return surgery

    @staticmethod
    @transaction.atomic
    def start(*, surgery_id: UUID, actor_user_id: int | None) -> Surgery:
        surgery = _lock(surgery_id)
        if not surgery.who_checklist_completed:
            raise StateConflict("WHO checklist must be completed before surgery starts.")
        _transition(surgery, S.IN_PROGRESS, actor_user_id=actor_user_id)
        surgery.save(update_fields=["status", "updated_at"])
        return surgery

    @staticmethod
    @transaction.atomic
    def complete_surgery(
        *,
        surgery_id: UUID,
        actor_user_id: int | None,
        intra_op_notes: str = "",
        complications: str = "",
    ) -> Surgery:
        surgery = _lock(surgery_id)
        _transition(surgery, S.SURGERY_COMPLETE, actor_user_id=actor_user_id)
        surgery.intra_op_notes = intra_op_notes or surgery.intra_op_notes
        surgery.complications = complications or surgery.complications
        surgery.save(update_fields=["status", "intra_op_notes", "complications", "updated_at"])
        return surgery

    @staticmethod
    @transaction.atomic
    def sign_out(
        *,
        surgery_id: UUID,
        sign_out: list[bool],
        actor_user_id: int | None,
        post_op_notes: str = "",
    ) -> Surgery:
        surgery = _lock(surgery_id)
        entries = checklists.validate_phase(checklists.SIGN_OUT, sign_out)
        _transition(surgery, S.POST_OP_CARE, actor_user_id=actor_user_id)

        record = dict(surgery.who_checklist or {})
        record[checklists.SIGN_OUT] = _checklist_record(entries, actor_user_id)
        surgery.who_checklist = record
        if post_op_notes:
            surgery.post_op_notes = post_op_notes
        surgery.save(update_fields=["status", "who_checklist", "post_op_notes", "updated_at"])
        return surgery

    @staticmethod
    def mark_completed(*, surgery: Surgery, actor_user_id: int | None, details: dict | None = None) -> Surgery:
        """Close out post-op care; called by inpatient admission within its transaction."""
        _transition(surgery, S.COMPLETED, actor_user_id=actor_user_id, details=details)
        surgery.save(update_fields=["status", "updated_at"])
        return surgery

    @staticmethod
    @transaction.atomic
    def cancel(*, surgery_id: UUID, actor_user_id: int | None) -> Surgery:
        surgery = _lock(surgery_id)
        _transition(surgery, S.CANCELLED, actor_user_id=actor_user_id)
        surgery.save(update_fields=["status", "updated_at"])
        return surgery

    @staticmethod
    @transaction.atomic
    def update_notes(*, surgery_id: UUID, actor_user_id: int | None, data: dict) -> Surgery:
        surgery = _lock(surgery_id)
        if surgery.status in (S.COMPLETED, S.CANCELLED):
            raise StateConflict("Closed surgeries cannot be edited.")

        updates = {k: v for k, v in (data or {}).items() if k in NOTE_FIELDS}
        for k, v in updates.items():
            setattr(surgery, k, v)
        surgery.save()

        AuditService.log(
            action=ActivityAction.UPDATE,
            entity_type="Surgery",
            entity_id=surgery.id,
            actor_user_id=actor_user_id,
            details={"updated_fields": sorted(updates.keys())},
        )
        return surgery

    @staticmethod
    @transaction.atomic
    def delete(*, surgery_id: UUID, actor_user_id: int | None) -> None:
        surgery = Surgery.objects.get(id=surgery_id)
        name = surgery.surgery_name
        surgery.delete()
        AuditService.log(
            action=ActivityAction.DELETE,
            entity_type="Surgery",
            entity_id=surgery_id,
            actor_user_id=actor_user_id,
            details={"surgery_name": name},
        )
