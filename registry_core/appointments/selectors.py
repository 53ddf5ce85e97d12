# registry_core/appointments/selectors.py
from __future__ import annotations

from datetime import date
from uuid import UUID

from django.db.models import QuerySet
from django.utils import timezone

from registry_core.appointments.models import Appointment, DoctorSchedule, FollowUp, FollowUpStatus
from registry_core.patients.models import Patient


def list_appointments(
    *,
    status: str | None = None,
    on_date: date | None = None,
    doctor_id: int | None = None,
    patient_id: UUID | None = None,
) -> QuerySet[Appointment]:
    qs = Appointment.objects.select_related("patient", "doctor__profile")
    if status:
        qs = qs.filter(status=status)
    if on_date:
        qs = qs.filter(appointment_date=on_date)
    if doctor_id:
        qs = qs.filter(doctor_id=doctor_id)
    if patient_id:
        qs = qs.filter(patient_id=patient_id)
    return qs.order_by("appointment_date", "appointment_time")


def patients_for_doctor(*, doctor_id: int) -> QuerySet[Patient]:
    """Distinct patients with at least one appointment with the doctor."""
    return Patient.objects.filter(appointments__doctor_id=doctor_id).distinct().order_by("last_name", "first_name")


def schedules_for(*, doctor_id: int | None = None) -> QuerySet[DoctorSchedule]:
    qs = DoctorSchedule.objects.select_related("doctor__profile")
    if doctor_id:
        qs = qs.filter(doctor_id=doctor_id)
    return qs.order_by("doctor_id", "day_of_week", "start_time")


def list_follow_ups(*, status: str | None = None, patient_id: UUID | None = None) -> QuerySet[FollowUp]:
    qs = FollowUp.objects.select_related("patient")
    if status:
        qs = qs.filter(status=status)
    if patient_id:
        qs = qs.filter(patient_id=patient_id)
    return qs.order_by("scheduled_date", "created_at")


def follow_up_counts() -> dict:
    today = timezone.localdate()
    pending = FollowUp.objects.filter(status=FollowUpStatus.SCHEDULED)
    return {
        "overdue": pending.filter(scheduled_date__lt=today).count(),
        "due_today": pending.filter(scheduled_date=today).count(),
    }
