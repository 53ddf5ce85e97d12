# registry_core/consultations/services.py
from __future__ import annotations

import logging
from typing import Iterable
from uuid import UUID

from django.db import transaction

from registry_core.appointments.models import Appointment, AppointmentStatus
from registry_core.appointments.services import AppointmentService
from registry_core.audit.models import ActivityAction
from registry_core.audit.services import AuditService
from registry_core.common.transitions import StateConflict, ensure_transition
from registry_core.consultations.models import Consultation, ConsultationStatus
from registry_core.lab.models import LabPriority, LabTest, LabTestStatus
from registry_core.lab.services import LabService
from registry_core.patients.models import Patient

logger = logging.getLogger(__name__)

S = ConsultationStatus

CONSULTATION_TRANSITIONS = {
    S.PENDING: {S.AWAITING_LAB_RESULTS, S.COMPLETED, S.REFERRED_TO_SURGERY, S.REFERRED_TO_PRESCRIPTION},
    S.AWAITING_LAB_RESULTS: {S.LAB_RESULTS_REVIEWED},
    S.LAB_RESULTS_REVIEWED: {S.COMPLETED, S.REFERRED_TO_SURGERY, S.REFERRED_TO_PRESCRIPTION},
    S.REFERRED_TO_SURGERY: {S.COMPLETED},
    S.REFERRED_TO_PRESCRIPTION: {S.COMPLETED},
}

NOTE_FIELDS = ("chief_complaint", "clinical_findings", "diagnosis", "treatment_plan", "notes")


def _transition(consultation: Consultation, target: str, *, actor_user_id: int | None, details: dict | None = None):
    previous = consultation.status
    ensure_transition(CONSULTATION_TRANSITIONS, entity="consultation", current=previous, target=target)
    consultation.status = target

    AuditService.log(
        action=ActivityAction.STATUS_CHANGE,
        entity_type="Consultation",
        entity_id=consultation.id,
        actor_user_id=actor_user_id,
        details={"from": previous, "to": target, **(details or {})},
    )
    logger.info("consultation %s %s -> %s", consultation.id, previous, target)


def _lock(consultation_id: UUID) -> Consultation:
    return Consultation.objects.select_for_update().get(id=consultation_id)


class ConsultationService:
    @staticmethod
    @transaction.atomic
    def start_consultation(
        *,
        patient_id: UUID,
        actor_user_id: int | None,
        appointment_id: UUID | None = None,
        chief_complaint: str = "",
        clinical_findings: str = "",
        diagnosis: str = "",
        treatment_plan: str = "",
        notes: str = "",
    ) -> Consultation:
        patient = Patient.objects.get(id=patient_id)

        if appointment_id is not None:
            appt = Appointment.objects.get(id=appointment_id)
            if appt.patient_id != patient.id:
                raise ValueError("Appointment belongs to a different patient.")
            if appt.status == AppointmentStatus.SCHEDULED:
                AppointmentService.start(appointment_id=appt.id, actor_user_id=actor_user_id)

        consultation = Consultation.objects.create(
            appointment_id=appointment_id,
            patient=patient,
            doctor_id=actor_user_id,
            chief_complaint=chief_complaint,
            clinical_findings=clinical_findings,
            diagnosis=diagnosis,
            treatment_plan=treatment_plan,
            notes=notes,
        )

        AuditService.log(
            action=ActivityAction.CREATE,
            entity_type="Consultation",
            entity_id=consultation.id,
            actor_user_id=actor_user_id,
            details={"patient_id": str(patient.id), "appointment_id": str(appointment_id) if appointment_id else None},
        )
        return consultation

    @staticmethod
    @transaction.atomic
    def update_notes(*, consultation_id: UUID, actor_user_id: int | None, data: dict) -> Consultation:
        consultation = _lock(consultation_id)
        if consultation.status == S.COMPLETED:
            raise StateConflict("Completed consultations cannot be edited.")

        updates = {k: v for k, v in (data or {}).items() if k in NOTE_FIELDS}
        for k, v in updates.items():
            setattr(consultation, k, v)
        consultation.save()

        AuditService.log(
            action=ActivityAction.UPDATE,
            entity_type="Consultation",
            entity_id=consultation.id,
            actor_user_id=actor_user_id,
            details={"updated_fields": sorted(updates.keys())},
        )
        return consultation

    @staticmethod
    @transaction.atomic
    def order_lab_tests(
        *,
        consultation_id: UUID,
        tests: Iterable[dict],
        actor_user_id: int | None,
        priority: str = LabPriority.ROUTINE,
    ) -> list[LabTest]:
        tests = list(tests)
        if not tests:
            raise ValueError("Select at least one lab test.")

        consultation = _lock(consultation_id)
        _transition(consultation, S.AWAITING_LAB_RESULTS, actor_user_id=actor_user_id, details={"tests": len(tests)})

        created = [
            LabService.order_test(
                patient_id=consultation.patient_id,
                test_type=t["test_type"],
                test_name=t["test_name"],
                priority=priority,
                notes=t.get("notes") or "",
                consultation_id=consultation.id,
                actor_user_id=actor_user_id,
            )
            for t in tests
        ]

        consultation.requires_lab_tests = True
        consultation.lab_tests_ordered = list(consultation.lab_tests_ordered or []) + [t.test_name for t in created]
        consultation.save(update_fields=["status", "requires_lab_tests", "lab_tests_ordered", "updated_at"])
        return created

    @staticmethod
    @transaction.atomic
    def review_lab_results(*, consultation_id: UUID, actor_user_id: int | None, notes: str = "") -> Consultation:
        consultation = _lock(consultation_id)

        outstanding = (
            LabTest.objects.filter(consultation=consultation)
            .exclude(status__in=[LabTestStatus.COMPLETED, LabTestStatus.CANCELLED])
            .count()
        )
        if outstanding:
            raise StateConflict(f"{outstanding} ordered lab test(s) are not completed yet.")

        _transition(consultation, S.LAB_RESULTS_REVIEWED, actor_user_id=actor_user_id)
        consultation.lab_results_reviewed = True
        if notes:
            consultation.notes = f"{consultation.notes}\n{notes}".strip()
        consultation.save(update_fields=["status", "lab_results_reviewed", "notes", "updated_at"])
        return consultation

    @staticmethod
    @transaction.atomic
    def refer_to_surgery(*, consultation_id: UUID, actor_user_id: int | None, notes: str = "") -> Consultation:
        consultation = _lock(consultation_id)
        _transition(consultation, S.REFERRED_TO_SURGERY, actor_user_id=actor_user_id)
        consultation.requires_surgery = True
        consultation.surgery_referral_notes = notes or ""
        consultation.save(update_fields=["status", "requires_surgery", "surgery_referral_notes", "updated_at"])
        return consultation

    @staticmethod
    @transaction.atomic
    def refer_to_prescription(*, consultation_id: UUID, actor_user_id: int | None) -> Consultation:
        consultation = _lock(consultation_id)
        _transition(consultation, S.REFERRED_TO_PRESCRIPTION, actor_user_id=actor_user_id)
        consultation.requires_prescription = True
        consultation.save(update_fields=["status", "requires_prescription", "updated_at"])
        return consultation

    @staticmethod
    @transaction.atomic
    def complete(*, consultation_id: UUID, actor_user_id: int | None, **flags) -> Consultation:
        """
        Close the consultation and its linked appointment.
        flags may set requires_prescription / requires_surgery on the way out.
        """
        consultation = _lock(consultation_id)
        _transition(consultation, S.COMPLETED, actor_user_id=actor_user_id)

        for k in ("requires_prescription", "requires_surgery"):
            if flags.get(k):
                setattr(consultation, k, True)
        consultation.save()

        if consultation.appointment_id:
            appt = Appointment.objects.get(id=consultation.appointment_id)
            if appt.status == AppointmentStatus.SCHEDULED:
                AppointmentService.start(appointment_id=appt.id, actor_user_id=actor_user_id)
                appt.status = AppointmentStatus.IN_PROGRESS
            if appt.status == AppointmentStatus.IN_PROGRESS:
                AppointmentService.complete(appointment_id=appt.id, actor_user_id=actor_user_id)
        return consultation
