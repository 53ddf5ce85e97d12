# registry_core/lab/services.py
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
from registry_core.lab.models import LabPriority, LabResult, LabTest, LabTestStatus
from registry_core.patients.models import Patient

logger = logging.getLogger(__name__)

# Results may be entered straight from pending (walk-in samples).
LAB_TRANSITIONS = {
    LabTestStatus.PENDING: {LabTestStatus.IN_PROGRESS, LabTestStatus.COMPLETED, LabTestStatus.CANCELLED},
    LabTestStatus.IN_PROGRESS: {LabTestStatus.COMPLETED, LabTestStatus.CANCELLED},
}


class LabService:
    """
    Lab work queue:
    - order (notifies lab technicians)
    - start processing
    - enter results (completes the test, notifies the ordering clinician)
    - cancel
    """

    @staticmethod
    @transaction.atomic
    def order_test(
        *,
        patient_id: UUID,
        test_type: str,
        test_name: str,
        actor_user_id: int | None,
        priority: str = LabPriority.ROUTINE,
        notes: str = "",
        consultation_id: UUID | None = None,
    ) -> LabTest:
        patient = Patient.objects.get(id=patient_id)

        test = LabTest.objects.create(
            patient=patient,
            ordered_by_id=actor_user_id,
            consultation_id=consultation_id,
            test_type=test_type,
            test_name=test_name,
            priority=priority or LabPriority.ROUTINE,
            notes=notes or "",
        )

        AuditService.log(
            action=ActivityAction.CREATE,
            entity_type="LabTest",
            entity_id=test.id,
            actor_user_id=actor_user_id,
            details={"patient_id": str(patient.id), "test_name": test_name, "priority": test.priority},
        )
        publish(
            "lab.test_ordered",
            {
                "lab_test_id": test.id,
                "test_name": test.test_name,
                "priority": test.priority,
                "patient_name": patient.full_name,
            },
        )
        logger.info("lab test ordered id=%s priority=%s", test.id, test.priority)
        return test

    @staticmethod
    def _move(test: LabTest, target: str) -> str:
        previous = test.status
        ensure_transition(LAB_TRANSITIONS, entity="lab test", current=previous, target=target)
        test.status = target
        return previous

    @staticmethod
    @transaction.atomic
    def start_processing(*, lab_test_id: UUID, actor_user_id: int | None) -> LabTest:
        test = LabTest.objects.select_for_update().get(id=lab_test_id)
        previous = LabService._move(test, LabTestStatus.IN_PROGRESS)
        test.save(update_fields=["status", "updated_at"])

        AuditService.log(
            action=ActivityAction.STATUS_CHANGE,
            entity_type="LabTest",
            entity_id=test.id,
            actor_user_id=actor_user_id,
            details={"from": previous, "to": test.status},
        )
        return test

    @staticmethod
    @transaction.atomic
    def enter_results(*, lab_test_id: UUID, results: Iterable[dict], actor_user_id: int | None) -> LabTest:
        rows = [
            r
            for r in results
            if str(r.get("parameter_name") or "").strip() and str(r.get("value") or "").strip()
        ]
        if not rows:
            raise ValueError("At least one result with a parameter name and value is required.")

        test = LabTest.objects.select_for_update().select_related("patient").get(id=lab_test_id)
        previous = LabService._move(test, LabTestStatus.COMPLETED)

        LabResult.objects.bulk_create(
            [
                LabResult(
                    lab_test=test,
                    parameter_name=r["parameter_name"].strip(),
                    value=str(r["value"]).strip(),
                    unit=r.get("unit") or "",
                    reference_range=r.get("reference_range") or "",
                    is_abnormal=bool(r.get("is_abnormal")),
                    notes=r.get("notes") or "",
                    entered_by_id=actor_user_id,
                )
                for r in rows
            ]
        )

        test.completed_at = timezone.now()
        test.save(update_fields=["status", "completed_at", "updated_at"])

        has_abnormal = any(r.get("is_abnormal") for r in rows)
        AuditService.log(
            action=ActivityAction.STATUS_CHANGE,
            entity_type="LabTest",
            entity_id=test.id,
            actor_user_id=actor_user_id,
            details={"from": previous, "to": test.status, "results": len(rows), "abnormal": has_abnormal},
        )
        publish(
            "lab.results_entered",
            {
                "ordered_by_id": test.ordered_by_id,
                "lab_test_id": test.id,
                "test_name": test.test_name,
                "patient_name": test.patient.full_name,
                "has_abnormal": has_abnormal,
            },
        )
        logger.info("lab results entered id=%s rows=%s abnormal=%s", test.id, len(rows), has_abnormal)
        return test

    @staticmethod
    @transaction.atomic
    def cancel_test(*, lab_test_id: UUID, actor_user_id: int | None, reason: str = "") -> LabTest:
        test = LabTest.objects.select_for_update().get(id=lab_test_id)
        previous = LabService._move(test, LabTestStatus.CANCELLED)
        if reason:
            test.notes = f"{test.notes}\nCancelled: {reason}".strip()
        test.save(update_fields=["status", "notes", "updated_at"])

        AuditService.log(
            action=ActivityAction.STATUS_CHANGE,
            entity_type="LabTest",
            entity_id=test.id,
            actor_user_id=actor_user_id,
            details={"from": previous, "to": test.status, "reason": reason},
        )
        return test
