# registry_core/consultations/api/serializers.py
from __future__ import annotations

from rest_framework import serializers

from registry_core.consultations.models import Consultation
from registry_core.iam.models import display_name
from registry_core.lab.models import LabPriority
from registry_core.patients.api.serializers import PatientBriefSerializer


class ConsultationStartSerializer(serializers.Serializer):
    patient_id = serializers.UUIDField()
    appointment_id = serializers.UUIDField(required=False, allow_null=True)
    chief_complaint = serializers.CharField(required=False, allow_blank=True, default="")
    clinical_findings = serializers.CharField(required=False, allow_blank=True, default="")
    diagnosis = serializers.CharField(required=False, allow_blank=True, default="")
    treatment_plan = serializers.CharField(required=False, allow_blank=True, default="")
    notes = serializers.CharField(required=False, allow_blank=True, default="")


class ConsultationNotesSerializer(serializers.Serializer):
    chief_complaint = serializers.CharField(required=False, allow_blank=True)
    clinical_findings = serializers.CharField(required=False, allow_blank=True)
    diagnosis = serializers.CharField(required=False, allow_blank=True)
    treatment_plan = serializers.CharField(required=False, allow_blank=True)
    notes = serializers.CharField(required=False, allow_blank=True)

    def validate(self, attrs):
        if not attrs:
            raise serializers.ValidationError("At least one field is required.")
        return attrs


class LabTestRequestSerializer(serializers.Serializer):
    test_type = serializers.CharField(max_length=64)
    test_name = serializers.CharField(max_length=255)
    notes = serializers.CharField(required=False, allow_blank=True, default="")


class OrderLabsSerializer(serializers.Serializer):
    tests = LabTestRequestSerializer(many=True, allow_empty=False)
    priority = serializers.ChoiceField(choices=LabPriority.choices, required=False, default=LabPriority.ROUTINE)


class ReviewLabsSerializer(serializers.Serializer):
    notes = serializers.CharField(required=False, allow_blank=True, default="")


class ReferSurgerySerializer(serializers.Serializer):
    notes = serializers.CharField(required=False, allow_blank=True, default="")


class ConsultationSerializer(serializers.ModelSerializer):
    patient = PatientBriefSerializer(read_only=True)
    appointment_id = serializers.UUIDField(read_only=True, allow_null=True)
    doctor_id = serializers.IntegerField(read_only=True, allow_null=True)
    doctor_name = serializers.SerializerMethodField()

    class Meta:
        model = Consultation
        fields = [
            "id",
            "appointment_id",
            "patient",
            "doctor_id",
            "doctor_name",
            "consultation_date",
            "chief_complaint",
            "clinical_findings",
            "diagnosis",
            "treatment_plan",
            "requires_lab_tests",
            "lab_tests_ordered",
            "lab_results_reviewed",
            "requires_surgery",
            "surgery_referral_notes",
            "requires_prescription",
            "notes",
            "status",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def get_doctor_name(self, obj) -> str:
        return display_name(obj.doctor) if obj.doctor_id else ""
