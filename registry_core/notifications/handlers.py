# registry_core/notifications/handlers.py
"""
Domain event subscribers that turn clinical writes into inbox entries.

Payloads are plain dicts (ids + display strings) so publishers never
import this module.
"""
from __future__ import annotations

from registry_core.common.events import subscribe
from registry_core.common.permissions import ROLE_LAB_TECHNICIAN, ROLE_PHARMACIST
from registry_core.notifications.models import NotificationType
from registry_core.notifications.services import NotificationService

APPOINTMENT_BOOKED = "appointment.booked"
LAB_TEST_ORDERED = "lab.test_ordered"
LAB_RESULTS_ENTERED = "lab.results_entered"
PRESCRIPTION_CREATED = "prescription.created"

URGENT_PRIORITIES = {"urgent", "stat"}


@subscribe(APPOINTMENT_BOOKED)
def on_appointment_booked(payload):
    d = payload["appointment_date"]
    when = f"{d:%b} {d.day}, {d.year}"
    NotificationService.notify_user(
        user_id=payload["doctor_id"],
        title="New Appointment Scheduled",
        message=(
            f"Appointment with {payload['patient_name']} on {when} "
            f"at {payload['appointment_time']:%H:%M}. Type: {payload['appointment_type']}"
        ),
        notification_type=NotificationType.INFO,
        related_entity_type="appointment",
        related_entity_id=payload["appointment_id"],
    )


@subscribe(LAB_TEST_ORDERED)
def on_lab_test_ordered(payload):
    priority = payload["priority"]
    test_name = payload["test_name"]
    urgent = priority in URGENT_PRIORITIES
    NotificationService.notify_role(
        role=ROLE_LAB_TECHNICIAN,
        title=f"Urgent Lab Order: {test_name}" if urgent else f"New Lab Order: {test_name}",
        message=f"Lab test ordered for {payload['patient_name']}. Priority: {priority.upper()}",
        notification_type=NotificationType.WARNING if urgent else NotificationType.INFO,
        related_entity_type="lab_test",
        related_entity_id=payload["lab_test_id"],
    )


@subscribe(LAB_RESULTS_ENTERED)
def on_lab_results_entered(payload):
    test_name = payload["test_name"]
    patient_name = payload["patient_name"]
    abnormal = payload["has_abnormal"]
    NotificationService.notify_user(
        user_id=payload["ordered_by_id"],
        title=f"Abnormal Lab Results: {test_name}" if abnormal else f"Lab Results Ready: {test_name}",
        message=(
            f"Lab results for {patient_name} contain abnormal values. Please review."
            if abnormal
            else f"Lab results for {patient_name} are now available."
        ),
        notification_type=NotificationType.WARNING if abnormal else NotificationType.SUCCESS,
        related_entity_type="lab_test",
        related_entity_id=payload["lab_test_id"],
    )


@subscribe(PRESCRIPTION_CREATED)
def on_prescription_created(payload):
    NotificationService.notify_role(
        role=ROLE_PHARMACIST,
        title="New Prescription",
        message=f"A new prescription for {payload['patient_name']} is ready for dispensing.",
        notification_type=NotificationType.INFO,
        related_entity_type="prescription",
        related_entity_id=payload["prescription_id"],
    )
