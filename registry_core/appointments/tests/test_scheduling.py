# registry_core/appointments/tests/test_scheduling.py
from datetime import date, time

import pytest
from django.db import IntegrityError, transaction

from registry_core.appointments import services
from registry_core.appointments.models import Appointment, DoctorSchedule
from registry_core.common.transitions import StateConflict
from registry_core.notifications.models import Notification

pytestmark = pytest.mark.django_db

# 2030-01-07 is a Monday (day_of_week=1)
MONDAY = "2030-01-07"


@pytest.fixture
def monday_clinic(doctor):
    return DoctorSchedule.objects.create(doctor=doctor, day_of_week=1, start_time="09:00", end_time="11:00")


def test_doctor_replaces_own_schedule(client_for, doctor):
    c = client_for(doctor)
    DoctorSchedule.objects.create(doctor=doctor, day_of_week=3, start_time="08:00", end_time="09:00")

    res = c.post(
        "/api/v1/doctor-schedules/replace/",
        {
            "entries": [
                {"day_of_week": 1, "start_time": "09:00", "end_time": "12:00"},
                {"day_of_week": 5, "start_time": "14:00", "end_time": "16:00", "is_available": False},
            ]
        },
        format="json",
    )
    assert res.status_code == 200, res.data
    assert [(e["day_of_week"], e["start_time"]) for e in res.data] == [(1, "09:00:00"), (5, "14:00:00")]
    assert DoctorSchedule.objects.filter(doctor=doctor).count() == 2


def test_doctor_cannot_edit_another_doctors_schedule(client_for, doctor):
    other = client_for("doctor")
    res = other.post(
        "/api/v1/doctor-schedules/replace/",
        {"doctor_id": doctor.id, "entries": []},
        format="json",
    )
    assert res.status_code == 403


def test_admin_edits_any_doctor_schedule(api_client, doctor):
    res = api_client.post(
        "/api/v1/doctor-schedules/replace/",
        {"doctor_id": doctor.id, "entries": [{"day_of_week": 2, "start_time": "10:00", "end_time": "11:00"}]},
        format="json",
    )
    assert res.status_code == 200, res.data
    assert res.data[0]["doctor_id"] == doctor.id


def test_schedule_window_must_be_ordered(api_client, doctor):
    res = api_client.post(
        "/api/v1/doctor-schedules/replace/",
        {"doctor_id": doctor.id, "entries": [{"day_of_week": 2, "start_time": "11:00", "end_time": "10:00"}]},
        format="json",
    )
    assert res.status_code == 400


def test_schedule_target_must_be_a_doctor(api_client, nurse):
    res = api_client.post(
        "/api/v1/doctor-schedules/replace/",
        {"doctor_id": nurse.id, "entries": []},
        format="json",
    )
    assert res.status_code == 400
    assert res.json()["error"]["message"] == "Selected user is not an active doctor."


def test_available_slots_exclude_end_and_booked_times(api_client, doctor, patient, monday_clinic):
    DoctorSchedule.objects.create(doctor=doctor, day_of_week=1, start_time="14:00", end_time="15:00", is_available=False)

    res = api_client.get(f"/api/v1/appointments/available-slots/?doctor={doctor.id}&date={MONDAY}")
    assert res.status_code == 200
    assert res.data["slots"] == ["09:00", "09:30", "10:00", "10:30"]

    book = api_client.post(
        "/api/v1/appointments/",
        {"patient_id": str(patient.id), "doctor_id": doctor.id, "appointment_date": MONDAY, "appointment_time": "09:30"},
        format="json",
    )
    assert book.status_code == 201, book.data

    res = api_client.get(f"/api/v1/appointments/available-slots/?doctor={doctor.id}&date={MONDAY}")
    assert res.data["slots"] == ["09:00", "10:00", "10:30"]


def test_no_schedule_means_no_slots(api_client, doctor):
    res = api_client.get(f"/api/v1/appointments/available-slots/?doctor={doctor.id}&date=2030-01-08")
    assert res.status_code == 200
    assert res.data["slots"] == []


def test_available_slots_requires_params(api_client):
    res = api_client.get("/api/v1/appointments/available-slots/")
    assert res.status_code == 400


def test_booking_notifies_doctor(client_for, doctor, patient, monday_clinic):
    res = client_for("nurse").post(
        "/api/v1/appointments/",
        {
            "patient_id": str(patient.id),
            "doctor_id": doctor.id,
            "appointment_date": MONDAY,
            "appointment_time": "10:00",
            "appointment_type": "follow_up",
        },
        format="json",
    )
    assert res.status_code == 201, res.data
    assert res.data["status"] == "scheduled"

    notif = Notification.objects.get(user=doctor)
    assert notif.title == "New Appointment Scheduled"
    assert notif.message == "Appointment with Amina Otieno on Jan 7, 2030 at 10:00. Type: follow_up"


def test_booking_outside_schedule_or_twice_is_rejected(api_client, doctor, patient, monday_clinic):
    payload = {"patient_id": str(patient.id), "doctor_id": doctor.id, "appointment_date": MONDAY}

    outside = api_client.post("/api/v1/appointments/", {**payload, "appointment_time": "11:00"}, format="json")
    assert outside.status_code == 400
    assert outside.json()["error"]["message"] == "The selected time slot is not available."

    first = api_client.post("/api/v1/appointments/", {**payload, "appointment_time": "09:00"}, format="json")
    assert first.status_code == 201
    again = api_client.post("/api/v1/appointments/", {**payload, "appointment_time": "09:00"}, format="json")
    assert again.status_code == 400


def test_cancelled_appointment_frees_the_slot(api_client, doctor, patient, monday_clinic):
    payload = {"patient_id": str(patient.id), "doctor_id": doctor.id, "appointment_date": MONDAY, "appointment_time": "09:00"}
    appt = api_client.post("/api/v1/appointments/", payload, format="json").data

    assert api_client.post(f"/api/v1/appointments/{appt['id']}/cancel/").status_code == 200
    assert api_client.post("/api/v1/appointments/", payload, format="json").status_code == 201


def test_slot_taken_between_check_and_insert_is_a_conflict(monkeypatch, doctor, patient, monday_clinic):
    Appointment.objects.create(patient=patient, doctor=doctor, appointment_date=date(2030, 1, 7), appointment_time="09:00")
    # the availability read ran before the other booking committed
    monkeypatch.setattr(services, "available_slots", lambda **kw: [time(9, 0)])

    with pytest.raises(StateConflict):
        services.AppointmentService.book_appointment(
            patient_id=patient.id,
            doctor_id=doctor.id,
            appointment_date=date(2030, 1, 7),
            appointment_time=time(9, 0),
            actor_user_id=None,
        )
    assert Appointment.objects.filter(appointment_date=date(2030, 1, 7)).count() == 1


def test_database_refuses_double_booked_slot_but_not_cancelled_one(doctor, patient):
    Appointment.objects.create(
        patient=patient, doctor=doctor, appointment_date=MONDAY, appointment_time="10:00", status="cancelled"
    )
    Appointment.objects.create(patient=patient, doctor=doctor, appointment_date=MONDAY, appointment_time="10:00")
    with pytest.raises(IntegrityError), transaction.atomic():
        Appointment.objects.create(patient=patient, doctor=doctor, appointment_date=MONDAY, appointment_time="10:00")
