# registry_core/consultations/selectors.py
from __future__ import annotations

from uuid import UUID

from django.db.models import QuerySet

from registry_core.consultations.models import Consultation, ConsultationStatus


def list_consultations(
    *,
    status: str | None = None,
    patient_id: UUID | None = None,
    doctor_id: int | None = None,
) -> QuerySet[Consultation]:
    qs = Consultation.objects.select_related("patient", "doctor__profile")
    if status:
        qs = qs.filter(status=status)
    if patient_id:
        qs = qs.filter(patient_id=patient_id)
    if doctor_id:
        qs = qs.filter(doctor_id=doctor_id)
    return qs.order_by("-consultation_date")


def surgery_referrals() -> QuerySet[Consultation]:
    """Consultations waiting for a surgery to be scheduled."""
    return list_consultations(status=ConsultationStatus.REFERRED_TO_SURGERY).order_by("consultation_date")
