# registry_core/patients/selectors.py
from __future__ import annotations

from uuid import UUID

from django.db.models import Q, QuerySet

from registry_core.patients.models import Patient


def get_patient(*, patient_id: UUID) -> Patient:
    return Patient.objects.get(id=patient_id)


def search_patients(*, q: str | None = None, status: str | None = None) -> QuerySet[Patient]:
    qs = Patient.objects.all()

    qv = (q or "").strip()
    if qv:
        qs = qs.filter(
            Q(first_name__icontains=qv)
            | Q(last_name__icontains=qv)
            | Q(patient_number__icontains=qv)
            | Q(phone__icontains=qv)
            | Q(national_id__icontains=qv)
        )

    if status:
        qs = qs.filter(status=status)

    return qs.order_by("-created_at")


def patient_summary(*, patient_id: UUID, limit: int = 10) -> dict:
    """
    Patient detail page payload: the record plus recent clinical activity.
    Imports are local to keep patients free of reverse app dependencies.
    """
    from registry_core.appointments.models import Appointment, FollowUp
    from registry_core.consultations.models import Consultation
    from registry_core.inpatient.models import IcuAdmission, WardAdmission
    from registry_core.lab.models import LabTest
    from registry_core.pharmacy.models import Prescription
    from registry_core.surgery.models import Surgery
    from registry_core.vitals.models import Vitals

    patient = get_patient(patient_id=patient_id)
    return {
        "patient": patient,
        "vitals": Vitals.objects.filter(patient=patient).order_by("-recorded_at")[:limit],
        "lab_tests": LabTest.objects.filter(patient=patient).prefetch_related("results").order_by("-ordered_at")[:limit],
        "prescriptions": Prescription.objects.filter(patient=patient).prefetch_related("items").order_by("-created_at")[:limit],
        "surgeries": Surgery.objects.filter(patient=patient).order_by("-scheduled_date")[:limit],
        "appointments": Appointment.objects.filter(patient=patient).order_by("-appointment_date", "-appointment_time")[:limit],
        "consultations": Consultation.objects.filter(patient=patient).order_by("-consultation_date")[:limit],
        "follow_ups": FollowUp.objects.filter(patient=patient).order_by("-scheduled_date")[:limit],
        "icu_admissions": IcuAdmission.objects.filter(patient=patient).order_by("-admitted_at")[:limit],
        "ward_admissions": WardAdmission.objects.filter(patient=patient).order_by("-admitted_at")[:limit],
    }
