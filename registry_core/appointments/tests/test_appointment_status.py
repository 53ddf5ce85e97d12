# registry_core/appointments/tests/test_appointment_status.py
from datetime import date, timedelta
from io import StringIO

import pytest
from django.core.management import call_command
from django.utils import timezone

from registry_core.appointments.models import Appointment
from registry_core.appointments.services import AppointmentService
from registry_core.notifications.models import Notification

pytestmark = pytest.mark.django_db


@pytest.fixture
def appointment(doctor, patient):
    return Appointment.objects.create(
        patient=patient,
        doctor=doctor,
        appointment_date=date(2030, 1, 7),
        appointment_time="09:00",
    )


def test_start_then_complete(client_for, doctor, appointment):
    c = client_for(doctor)
    res = c.post(f"/api/v1/appointments/{appointment.id}/start/")
    assert res.status_code == 200
    assert res.data["status"] == "in_progress"

    res = c.post(f"/api/v1/appointments/{appointment.id}/complete/")
    assert res.status_code == 200
    assert res.data["status"] == "completed"


@pytest.mark.parametrize("first,second", [("complete", None), ("cancel", "start"), ("cancel", "cancel")])
def test_illegal_transitions_return_409(api_client, appointment, first, second):
    res = api_client.post(f"/api/v1/appointments/{appointment.id}/{first}/")
    if second is None:
        assert res.status_code == 409
        return
    assert res.status_code == 200
    res = api_client.post(f"/api/v1/appointments/{appointment.id}/{second}/")
    assert res.status_code == 409
    assert res.json()["error"]["code"] == "conflict"


def test_completed_appointment_cannot_be_reopened(api_client, appointment):
    api_client.post(f"/api/v1/appointments/{appointment.id}/start/")
    api_client.post(f"/api/v1/appointments/{appointment.id}/complete/")
    assert api_client.post(f"/api/v1/appointments/{appointment.id}/start/").status_code == 409


def test_nurse_cannot_start_appointment(client_for, appointment):
    assert client_for("nurse").post(f"/api/v1/appointments/{appointment.id}/start/").status_code == 403


def test_notes_can_be_updated(api_client, appointment):
    res = api_client.patch(f"/api/v1/appointments/{appointment.id}/", {"notes": "Bring ECG"}, format="json")
    assert res.status_code == 200
    assert res.data["notes"] == "Bring ECG"


def test_mine_and_my_patients(client_for, doctor, appointment, patient):
    c = client_for(doctor)

    mine = c.get("/api/v1/appointments/mine/")
    assert mine.status_code == 200
    assert [a["id"] for a in mine.data["results"]] == [str(appointment.id)]

    Appointment.objects.create(
        patient=patient, doctor=doctor, appointment_date=date(2030, 1, 14), appointment_time="09:00"
    )
    patients = c.get("/api/v1/appointments/my-patients/")
    assert patients.status_code == 200
    assert [p["id"] for p in patients.data["results"]] == [str(patient.id)]


def test_send_reminders_notifies_for_tomorrow_only(doctor, patient):
    tomorrow = timezone.localdate() + timedelta(days=1)
    Appointment.objects.create(patient=patient, doctor=doctor, appointment_date=tomorrow, appointment_time="14:30")
    Appointment.objects.create(
        patient=patient, doctor=doctor, appointment_date=tomorrow, appointment_time="15:00", status="cancelled"
    )
    Appointment.objects.create(
        patient=patient, doctor=doctor, appointment_date=tomorrow + timedelta(days=1), appointment_time="09:00"
    )

    assert AppointmentService.send_reminders() == 1

    notif = Notification.objects.get(user=doctor)
    assert notif.title == "Appointment Reminder"
    assert notif.notification_type == "reminder"
    assert notif.message == (
        "Reminder: You have an appointment with Amina Otieno tomorrow at 14:30. Type: consultation"
    )


def test_reminder_command_reports_count(doctor, patient):
    Appointment.objects.create(patient=patient, doctor=doctor, appointment_date=date(2030, 3, 1), appointment_time="08:00")

    out = StringIO()
    call_command("send_appointment_reminders", "--date", "2030-03-01", stdout=out)
    assert "Sent 1 reminders" in out.getvalue()
    assert Notification.objects.get(user=doctor).message == (
        "Reminder: You have an appointment with Amina Otieno on Mar 1, 2030 at 08:00. Type: consultation"
    )


def test_reminder_for_today_says_today(doctor, patient):
    today = timezone.localdate()
    Appointment.objects.create(patient=patient, doctor=doctor, appointment_date=today, appointment_time="16:00")

    assert AppointmentService.send_reminders(on_date=today) == 1
    assert "Amina Otieno today at 16:00." in Notification.objects.get(user=doctor).message
