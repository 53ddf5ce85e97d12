# registry_core/appointments/api/serializers.py
from __future__ import annotations

from rest_framework import serializers

from registry_core.appointments.models import Appointment, DayOfWeek, DoctorSchedule, FollowUp
from registry_core.iam.models import display_name
from registry_core.patients.api.serializers import PatientBriefSerializer


class ScheduleEntrySerializer(serializers.Serializer):
    day_of_week = serializers.ChoiceField(choices=DayOfWeek.choices)
    start_time = serializers.TimeField()
    end_time = serializers.TimeField()
    is_available = serializers.BooleanField(required=False, default=True)

    def validate(self, attrs):
        if attrs["start_time"] >= attrs["end_time"]:
            raise serializers.ValidationError({"end_time": "End time must be after start time."})
        return attrs


class ScheduleReplaceSerializer(serializers.Serializer):
    """doctor_id defaults to the caller; only admins may target another doctor."""
    doctor_id = serializers.IntegerField(required=False)
    entries = ScheduleEntrySerializer(many=True, allow_empty=True)


class DoctorScheduleSerializer(serializers.ModelSerializer):
    doctor_id = serializers.IntegerField(read_only=True)
    doctor_name = serializers.SerializerMethodField()

    class Meta:
        model = DoctorSchedule
        fields = ["id", "doctor_id", "doctor_name", "day_of_week", "start_time", "end_time", "is_available"]
        read_only_fields = fields

    def get_doctor_name(self, obj) -> str:
        return display_name(obj.doctor)


class AppointmentCreateSerializer(serializers.Serializer):
    patient_id = serializers.UUIDField()
    doctor_id = serializers.IntegerField()
    appointment_date = serializers.DateField()
    appointment_time = serializers.TimeField()
    duration_minutes = serializers.IntegerField(required=False, default=30, min_value=5, max_value=480)
    appointment_type = serializers.CharField(required=False, default="consultation", max_length=64)
    notes = serializers.CharField(required=False, allow_blank=True, default="")


class AppointmentUpdateSerializer(serializers.Serializer):
    notes = serializers.CharField(allow_blank=True)


class AppointmentSerializer(serializers.ModelSerializer):
    patient = PatientBriefSerializer(read_only=True)
    doctor_id = serializers.IntegerField(read_only=True, allow_null=True)
    doctor_name = serializers.SerializerMethodField()
    scheduled_by_id = serializers.IntegerField(read_only=True, allow_null=True)

    class Meta:
        model = Appointment
        fields = [
            "id",
            "patient",
            "doctor_id",
            "doctor_name",
            "scheduled_by_id",
            "appointment_date",
            "appointment_time",
            "duration_minutes",
            "appointment_type",
            "status",
            "notes",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def get_doctor_name(self, obj) -> str:
        return display_name(obj.doctor) if obj.doctor_id else ""


class AvailableSlotsSerializer(serializers.Serializer):
    doctor_id = serializers.IntegerField()
    date = serializers.DateField()
    slots = serializers.ListField(child=serializers.TimeField(format="%H:%M"))


class FollowUpCreateSerializer(serializers.Serializer):
    patient_id = serializers.UUIDField()
    doctor_id = serializers.IntegerField(required=False, allow_null=True)
    scheduled_date = serializers.DateField()
    reason = serializers.CharField(max_length=255)
    notes = serializers.CharField(required=False, allow_blank=True, default="")


class FollowUpCompleteSerializer(serializers.Serializer):
    notes = serializers.CharField(required=False, allow_blank=True)


class FollowUpSerializer(serializers.ModelSerializer):
    patient = PatientBriefSerializer(read_only=True)
    doctor_id = serializers.IntegerField(read_only=True, allow_null=True)
    scheduled_by_id = serializers.IntegerField(read_only=True, allow_null=True)

    class Meta:
        model = FollowUp
        fields = [
            "id",
            "patient",
            "doctor_id",
            "scheduled_by_id",
            "scheduled_date",
            "reason",
            "notes",
            "status",
            "completed_at",
            "created_at",
        ]
        read_only_fields = fields

