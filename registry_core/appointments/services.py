# registry_core/appointments/services.py
from __future__ import annotations

import logging
from datetime import date, datetime, time, timedelta
from typing import Iterable
from uuid import UUID

from django.conf import settings
from django.contrib.auth import get_user_model
from django.db import IntegrityError, transaction
from django.utils import timezone

from registry_core.appointments.models import (
    Appointment,
    AppointmentStatus,
    DoctorSchedule,
    FollowUp,
    FollowUpStatus,
)
from registry_core.audit.models import ActivityAction
from registry_core.audit.services import AuditService
from registry_core.common.events import publish
from registry_core.common.permissions import ROLE_DOCTOR, has_role
from registry_core.common.transitions import StateConflict, ensure_transition
from registry_core.patients.models import Patient

logger = logging.getLogger(__name__)

APPOINTMENT_TRANSITIONS = {
    AppointmentStatus.SCHEDULED: {AppointmentStatus.IN_PROGRESS, AppointmentStatus.CANCELLED},
    AppointmentStatus.IN_PROGRESS: {AppointmentStatus.COMPLETED},
}

FOLLOW_UP_TRANSITIONS = {
    FollowUpStatus.SCHEDULED: {FollowUpStatus.COMPLETED, FollowUpStatus.CANCELLED},
}


def slot_minutes() -> int:
    return int(getattr(settings, "REGISTRY_SLOT_MINUTES", 30))


def schedule_day(d: date) -> int:
    """Schedule weekday for a date: 0=Sunday .. 6=Saturday."""
    return (d.weekday() + 1) % 7


def available_slots(*, doctor_id: int, on_date: date) -> list[time]:
    """
    Bookable start times for a doctor on a date: every slot from each available
    window's start up to (not including) its end, minus times held by
    non-cancelled appointments. Sorted and unique.
    """
    step = timedelta(minutes=slot_minutes())
    slots: set[time] = set()

    windows = DoctorSchedule.objects.filter(
        doctor_id=doctor_id,
        day_of_week=schedule_day(on_date),
        is_available=True,
    )
    for w in windows:
        cursor = datetime.combine(on_date, w.start_time)
        end = datetime.combine(on_date, w.end_time)
        while cursor < end:
            slots.add(cursor.time())
            cursor += step

    booked = set(
        Appointment.objects.filter(doctor_id=doctor_id, appointment_date=on_date)
        .exclude(status=AppointmentStatus.CANCELLED)
        .values_list("appointment_time", flat=True)
    )
    return sorted(s for s in slots if s not in booked)


def _day_phrase(target: date) -> str:
    delta = (target - timezone.localdate()).days
    if delta == 0:
        return "today"
    if delta == 1:
        return "tomorrow"
    return f"on {target:%b} {target.day}, {target.year}"


def _require_doctor(doctor_id: int):
    doctor = get_user_model().objects.filter(id=doctor_id, is_active=True).first()
    if doctor is None or not has_role(doctor, ROLE_DOCTOR):
        raise ValueError("Selected user is not an active doctor.")
    return doctor


class ScheduleService:
    @staticmethod
    @transaction.atomic
    def replace_schedule(*, doctor_id: int, entries: Iterable[dict], actor_user_id: int | None) -> list[DoctorSchedule]:
        """Swap the doctor's whole weekly schedule for `entries`."""
        entries = list(entries)
        for e in entries:
            if e["start_time"] >= e["end_time"]:
                raise ValueError("Schedule start time must be before end time.")

        _require_doctor(doctor_id)

        DoctorSchedule.objects.filter(doctor_id=doctor_id).delete()
        created = DoctorSchedule.objects.bulk_create(
            [
                DoctorSchedule(
                    doctor_id=doctor_id,
                    day_of_week=e["day_of_week"],
                    start_time=e["start_time"],
                    end_time=e["end_time"],
                    is_available=e.get("is_available", True),
                )
                for e in entries
            ]
        )

        AuditService.log(
            action=ActivityAction.UPDATE,
            entity_type="DoctorSchedule",
            entity_id=doctor_id,
            actor_user_id=actor_user_id,
            details={"entries": len(created)},
        )
        logger.info("schedule replaced doctor=%s entries=%s", doctor_id, len(created))
        return created


class AppointmentService:
    @staticmethod
    @transaction.atomic
    def book_appointment(
        *,
        patient_id: UUID,
        doctor_id: int,
        appointment_date: date,
        appointment_time: time,
        actor_user_id: int | None,
        duration_minutes: int = 30,
        appointment_type: str = "consultation",
        notes: str = "",
    ) -> Appointment:
        patient = Patient.objects.get(id=patient_id)
        _require_doctor(doctor_id)

        if appointment_time not in available_slots(doctor_id=doctor_id, on_date=appointment_date):
            raise ValueError("The selected time slot is not available.")

        try:
            with transaction.atomic():
                appt = Appointment.objects.create(
                    patient=patient,
                    doctor_id=doctor_id,
                    scheduled_by_id=actor_user_id,
                    appointment_date=appointment_date,
                    appointment_time=appointment_time,
                    duration_minutes=duration_minutes,
                    appointment_type=appointment_type or "consultation",
                    notes=notes or "",
                )
        except IntegrityError:
            raise StateConflict("The selected time slot was just booked.")

        AuditService.log(
            action=ActivityAction.CREATE,
            entity_type="Appointment",
            entity_id=appt.id,
            actor_user_id=actor_user_id,
            details={"patient_id": str(patient.id), "doctor_id": doctor_id},
        )
        publish(
            "appointment.booked",
            {
                "appointment_id": appt.id,
                "doctor_id": doctor_id,
                "patient_name": patient.full_name,
                "appointment_date": appointment_date,
                "appointment_time": appointment_time,
                "appointment_type": appt.appointment_type,
            },
        )
        return appt

    @staticmethod
    @transaction.atomic
    def set_status(*, appointment_id: UUID, status: str, actor_user_id: int | None) -> Appointment:
        appt = Appointment.objects.select_for_update().get(id=appointment_id)
        previous = appt.status
        ensure_transition(APPOINTMENT_TRANSITIONS, entity="appointment", current=previous, target=status)

        appt.status = status
        appt.save(update_fields=["status", "updated_at"])

        AuditService.log(
            action=ActivityAction.STATUS_CHANGE,
            entity_type="Appointment",
            entity_id=appt.id,
            actor_user_id=actor_user_id,
            details={"from": previous, "to": status},
        )
        logger.info("appointment %s %s -> %s", appt.id, previous, status)
        return appt

    @staticmethod
    def start(*, appointment_id: UUID, actor_user_id: int | None) -> Appointment:
        return AppointmentService.set_status(
            appointment_id=appointment_id, status=AppointmentStatus.IN_PROGRESS, actor_user_id=actor_user_id
        )

    @staticmethod
    def complete(*, appointment_id: UUID, actor_user_id: int | None) -> Appointment:
        return AppointmentService.set_status(
            appointment_id=appointment_id, status=AppointmentStatus.COMPLETED, actor_user_id=actor_user_id
        )

    @staticmethod
    def cancel(*, appointment_id: UUID, actor_user_id: int | None) -> Appointment:
        return AppointmentService.set_status(
            appointment_id=appointment_id, status=AppointmentStatus.CANCELLED, actor_user_id=actor_user_id
        )

    @staticmethod
    @transaction.atomic
    def update_notes(*, appointment_id: UUID, notes: str, actor_user_id: int | None) -> Appointment:
        appt = Appointment.objects.get(id=appointment_id)
        appt.notes = notes
        appt.save(update_fields=["notes", "updated_at"])
        AuditService.log(
            action=ActivityAction.UPDATE,
            entity_type="Appointment",
            entity_id=appt.id,
            actor_user_id=actor_user_id,
            details={"updated_fields": ["notes"]},
        )
        return appt

    @staticmethod
    @transaction.atomic
    def delete(*, appointment_id: UUID, actor_user_id: int | None) -> None:
        Appointment.objects.get(id=appointment_id).delete()
        AuditService.log(
            action=ActivityAction.DELETE,
            entity_type="Appointment",
            entity_id=appointment_id,
            actor_user_id=actor_user_id,
        )

    @staticmethod
    def send_reminders(*, on_date: date | None = None) -> int:
        """
        Remind doctors of scheduled appointments on `on_date` (default tomorrow).
        Returns the number of reminders sent.
        """
        from registry_core.notifications.models import NotificationType
        from registry_core.notifications.services import NotificationService

        target = on_date or (timezone.localdate() + timedelta(days=1))
        appts = Appointment.objects.select_related("patient").filter(
            appointment_date=target,
            status=AppointmentStatus.SCHEDULED,
            doctor__isnull=False,
        )

        when = _day_phrase(target)
        sent = 0
        for appt in appts:
            NotificationService.notify_user(
                user_id=appt.doctor_id,
                title="Appointment Reminder",
                message=(
                    f"Reminder: You have an appointment with {appt.patient.first_name} {appt.patient.last_name} "
                    f"{when} at {appt.appointment_time:%H:%M}. Type: {appt.appointment_type}"
                ),
                notification_type=NotificationType.REMINDER,
                related_entity_type="appointment",
                related_entity_id=appt.id,
            )
            sent += 1

        logger.info("appointment reminders date=%s sent=%s", target, sent)
        return sent


class FollowUpService:
    @staticmethod
    @transaction.atomic
    def schedule_follow_up(
        *,
        patient_id: UUID,
        scheduled_date: date,
        reason: str,
        actor_user_id: int | None,
        doctor_id: int | None = None,
        notes: str = "",
    ) -> FollowUp:
        patient = Patient.objects.get(id=patient_id)
        if doctor_id is not None:
            _require_doctor(doctor_id)

        fu = FollowUp.objects.create(
            patient=patient,
            doctor_id=doctor_id,
            scheduled_by_id=actor_user_id,
            scheduled_date=scheduled_date,
            reason=reason,
            notes=notes or "",
        )
        AuditService.log(
            action=ActivityAction.CREATE,
            entity_type="FollowUp",
            entity_id=fu.id,
            actor_user_id=actor_user_id,
            details={"patient_id": str(patient.id), "scheduled_date": scheduled_date.isoformat()},
        )
        return fu

    @staticmethod
    @transaction.atomic
    def _set_status(*, follow_up_id: UUID, status: str, actor_user_id: int | None, notes: str | None = None) -> FollowUp:
        fu = FollowUp.objects.select_for_update().get(id=follow_up_id)
        previous = fu.status
        ensure_transition(FOLLOW_UP_TRANSITIONS, entity="follow-up", current=previous, target=status)

        fu.status = status
        if status == FollowUpStatus.COMPLETED:
            fu.completed_at = timezone.now()
        if notes:
            fu.notes = notes
        fu.save(update_fields=["status", "completed_at", "notes", "updated_at"])

        AuditService.log(
            action=ActivityAction.STATUS_CHANGE,
            entity_type="FollowUp",
            entity_id=fu.id,
            actor_user_id=actor_user_id,
            details={"from": previous, "to": status},
        )
        return fu

    @staticmethod
    def complete_follow_up(*, follow_up_id: UUID, actor_user_id: int | None, notes: str | None = None) -> FollowUp:
        return FollowUpService._set_status(
            follow_up_id=follow_up_id, status=FollowUpStatus.COMPLETED, actor_user_id=actor_user_id, notes=notes
        )

    @staticmethod
    def cancel_follow_up(*, follow_up_id: UUID, actor_user_id: int | None) -> FollowUp:
        return FollowUpService._set_status(
            follow_up_id=follow_up_id, status=FollowUpStatus.CANCELLED, actor_user_id=actor_user_id
        )

    @staticmethod
    @transaction.atomic
    def delete(*, follow_up_id: UUID, actor_user_id: int | None) -> None:
        FollowUp.objects.get(id=follow_up_id).delete()
        AuditService.log(
            action=ActivityAction.DELETE,
            entity_type="FollowUp",
            entity_id=follow_up_id,
            actor_user_id=actor_user_id,
        )
