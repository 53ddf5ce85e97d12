# registry_core/inpatient/services.py
from __future__ import annotations

import logging
from uuid import UUID

from django.db import IntegrityError, transaction
from django.utils import timezone

from registry_core.audit.models import ActivityAction
from registry_core.audit.services import AuditService
from registry_core.common.transitions import StateConflict
from registry_core.inpatient.beds import BEDS, ICU, WARD
from registry_core.inpatient.models import (
    AdmissionStatus,
    IcuAdmission,
    IcuProgressNote,
    WardAdmission,
    WardSource,
)
from registry_core.patients.models import Patient
from registry_core.surgery.models import Surgery, SurgeryStatus
from registry_core.surgery.services import SurgeryService

logger = logging.getLogger(__name__)

ADMISSION_MODELS = {ICU: IcuAdmission, WARD: WardAdmission}


def occupied_beds(unit: str) -> set[str]:
    model = ADMISSION_MODELS[unit]
    return set(
        model.objects.filter(status=AdmissionStatus.ADMITTED)
        .exclude(bed_number="")
        .values_list("bed_number", flat=True)
    )


def available_beds(unit: str) -> list[str]:
    taken = occupied_beds(unit)
    return [b for b in BEDS[unit] if b not in taken]


def _check_bed(unit: str, bed_number: str) -> None:
    if bed_number not in BEDS[unit]:
        raise ValueError(f"Unknown {unit.upper()} bed: {bed_number}")
    if bed_number in occupied_beds(unit):
        raise StateConflict(f"Bed {bed_number} is already occupied.")


def _create_stay(model, **fields):
    """Insert an admitted stay; the partial unique constraints settle concurrent admits."""
    try:
        with transaction.atomic():
            return model.objects.create(**fields)
    except IntegrityError:
        raise StateConflict("Bed or patient was just admitted by another request.")


def _post_op_surgery(surgery_id: UUID) -> Surgery:
    surgery = Surgery.objects.select_for_update().select_related("patient").get(id=surgery_id)
    if surgery.status != SurgeryStatus.POST_OP_CARE:
        raise StateConflict("Only surgeries in post-op care can be admitted.")
    return surgery


class IcuService:
    @staticmethod
    @transaction.atomic
    def admit(
        *,
        bed_number: str,
        actor_user_id: int | None,
        patient_id: UUID | None = None,
        surgery_id: UUID | None = None,
        admission_reason: str = "",
    ) -> IcuAdmission:
        """
        Direct admission (patient_id) or post-op transfer (surgery_id).
        A post-op transfer closes the surgery.
        """
        surgery = None
        if surgery_id is not None:
            surgery = _post_op_surgery(surgery_id)
            patient = surgery.patient
            admission_reason = f"Post-surgery recovery: {surgery.surgery_name}"
        elif patient_id is not None:
            patient = Patient.objects.get(id=patient_id)
        else:
            raise ValueError("Either patient_id or surgery_id is required.")

        if IcuAdmission.objects.filter(patient=patient, status=AdmissionStatus.ADMITTED).exists():
            raise StateConflict("Patient is already admitted to ICU.")
        _check_bed(ICU, bed_number)

        admission = _create_stay(
            IcuAdmission,
            patient=patient,
            surgery=surgery,
            admitted_by_id=actor_user_id,
            bed_number=bed_number,
            admission_reason=admission_reason or "",
        )
        if surgery is not None:
            SurgeryService.mark_completed(
                surgery=surgery, actor_user_id=actor_user_id, details={"icu_admission_id": str(admission.id)}
            )

        AuditService.log(
            action=ActivityAction.CREATE,
            entity_type="IcuAdmission",
            entity_id=admission.id,
            actor_user_id=actor_user_id,
            details={"patient_id": str(patient.id), "bed_number": bed_number},
        )
        logger.info("icu admit patient=%s bed=%s", patient.id, bed_number)
        return admission

    @staticmethod
    @transaction.atomic
    def add_progress_note(*, icu_admission_id: UUID, actor_user_id: int | None, **fields) -> IcuProgressNote:
        admission = IcuAdmission.objects.get(id=icu_admission_id)
        if admission.status != AdmissionStatus.ADMITTED:
            raise StateConflict("Progress notes can only be added to an active ICU stay.")

        note = IcuProgressNote.objects.create(icu_admission=admission, recorded_by_id=actor_user_id, **fields)
        AuditService.log(
            action=ActivityAction.CREATE,
            entity_type="IcuProgressNote",
            entity_id=note.id,
            actor_user_id=actor_user_id,
            details={"icu_admission_id": str(admission.id), "recovery_status": note.recovery_status},
        )
        return note

    @staticmethod
    @transaction.atomic
    def discharge(
        *,
        icu_admission_id: UUID,
        actor_user_id: int | None,
        ward_bed_number: str = "",
    ) -> tuple[IcuAdmission, WardAdmission]:
        """Discharge from ICU and step the patient down to the ward."""
        admission = IcuAdmission.objects.select_for_update().get(id=icu_admission_id)
        if admission.status != AdmissionStatus.ADMITTED:
            raise StateConflict("ICU admission is already discharged.")

        if WardAdmission.objects.filter(patient_id=admission.patient_id, status=AdmissionStatus.ADMITTED).exists():
            raise StateConflict("Patient already has an active ward admission; discharge it before stepping down from ICU.")
        if ward_bed_number:
            _check_bed(WARD, ward_bed_number)

        admission.status = AdmissionStatus.DISCHARGED
        admission.discharged_at = timezone.now()
        admission.save(update_fields=["status", "discharged_at", "updated_at"])

        step_down = _create_stay(
            WardAdmission,
            patient_id=admission.patient_id,
            surgery_id=admission.surgery_id,
            icu_admission=admission,
            admitted_by_id=actor_user_id,
            bed_number=ward_bed_number or "",
            admission_reason=f"ICU step-down: {admission.admission_reason}",
            source=WardSource.ICU_DISCHARGE,
        )

        AuditService.log(
            action=ActivityAction.STATUS_CHANGE,
            entity_type="IcuAdmission",
            entity_id=admission.id,
            actor_user_id=actor_user_id,
            details={"from": AdmissionStatus.ADMITTED, "to": AdmissionStatus.DISCHARGED, "ward_admission_id": str(step_down.id)},
        )
        logger.info("icu discharge admission=%s step_down=%s", admission.id, step_down.id)
        return admission, step_down


class WardService:
    @staticmethod
    @transaction.atomic
    def admit(
        *,
        actor_user_id: int | None,
        patient_id: UUID | None = None,
        surgery_id: UUID | None = None,
        bed_number: str = "",
        admission_reason: str = "",
    ) -> WardAdmission:
        surgery = None
        if surgery_id is not None:
            surgery = _post_op_surgery(surgery_id)
            patient = surgery.patient
            source = WardSource.POST_OP
            admission_reason = f"Post-surgery recovery: {surgery.surgery_name}"
        elif patient_id is not None:
            patient = Patient.objects.get(id=patient_id)
            source = WardSource.DIRECT
        else:
            raise ValueError("Either patient_id or surgery_id is required.")

        if WardAdmission.objects.filter(patient=patient, status=AdmissionStatus.ADMITTED).exists():
            raise StateConflict("Patient is already admitted to the ward.")
        if bed_number:
            _check_bed(WARD, bed_number)

        admission = _create_stay(
            WardAdmission,
            patient=patient,
            surgery=surgery,
            admitted_by_id=actor_user_id,
            bed_number=bed_number or "",
            admission_reason=admission_reason or "",
            source=source,
        )
        if surgery is not None:
            SurgeryService.mark_completed(
                surgery=surgery, actor_user_id=actor_user_id, details={"ward_admission_id": str(admission.id)}
            )

        AuditService.log(
            action=ActivityAction.CREATE,
            entity_type="WardAdmission",
            entity_id=admission.id,
            actor_user_id=actor_user_id,
            details={"patient_id": str(patient.id), "bed_number": bed_number, "source": source},
        )
        return admission

    @staticmethod
    @transaction.atomic
    def discharge(*, ward_admission_id: UUID, actor_user_id: int | None, discharge_notes: str = "") -> WardAdmission:
        admission = WardAdmission.objects.select_for_update().get(id=ward_admission_id)
        if admission.status != AdmissionStatus.ADMITTED:
            raise StateConflict("Ward admission is already discharged.")

        admission.status = AdmissionStatus.DISCHARGED
        admission.discharged_at = timezone.now()
        admission.discharge_notes = discharge_notes or ""
        admission.save(update_fields=["status", "discharged_at", "discharge_notes", "updated_at"])

        AuditService.log(
            action=ActivityAction.STATUS_CHANGE,
            entity_type="WardAdmission",
            entity_id=admission.id,
            actor_user_id=actor_user_id,
            details={"from": AdmissionStatus.ADMITTED, "to": AdmissionStatus.DISCHARGED},
        )
        return admission
