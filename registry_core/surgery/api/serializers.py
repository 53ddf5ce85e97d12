# registry_core/surgery/api/serializers.py
from __future__ import annotations

from rest_framework import serializers

from registry_core.iam.models import display_name
from registry_core.patients.api.serializers import PatientBriefSerializer
from registry_core.surgery.checklists import CHECKLISTS, SIGN_IN, SIGN_OUT, TIME_OUT
from registry_core.surgery.models import Surgery, SurgicalConsent


class SurgeryScheduleSerializer(serializers.Serializer):
    patient_id = serializers.UUIDField()
    surgeon_id = serializers.IntegerField(required=False, allow_null=True)
    consultation_id = serializers.UUIDField(required=False, allow_null=True)
    surgery_type = serializers.CharField(max_length=64)
    surgery_name = serializers.CharField(max_length=255)
    scheduled_date = serializers.DateField()
    scheduled_time = serializers.TimeField(required=False, allow_null=True)
    duration_minutes = serializers.IntegerField(required=False, default=120, min_value=1)
    operating_room = serializers.CharField(max_length=32, required=False, allow_blank=True, default="")
    pre_op_assessment = serializers.CharField(required=False, allow_blank=True, default="")


class SurgeryNotesSerializer(serializers.Serializer):
    pre_op_assessment = serializers.CharField(required=False, allow_blank=True)
    intra_op_notes = serializers.CharField(required=False, allow_blank=True)
    post_op_notes = serializers.CharField(required=False, allow_blank=True)
    complications = serializers.CharField(required=False, allow_blank=True)
    operating_room = serializers.CharField(max_length=32, required=False, allow_blank=True)

    def validate(self, attrs):
        if not attrs:
            raise serializers.ValidationError("At least one field is required.")
        return attrs


def _checklist_field(phase: str) -> serializers.ListField:
    n = len(CHECKLISTS[phase])
    return serializers.ListField(child=serializers.BooleanField(), min_length=n, max_length=n)


class PreOpSerializer(serializers.Serializer):
    sign_in = _checklist_field(SIGN_IN)
    time_out = _checklist_field(TIME_OUT)
    pre_op_assessment = serializers.CharField(required=False, allow_blank=True, default="")


class CompleteSurgerySerializer(serializers.Serializer):
    intra_op_notes = serializers.CharField(required=False, allow_blank=True, default="")
    complications = serializers.CharField(required=False, allow_blank=True, default="")


class SignOutSerializer(serializers.Serializer):
    sign_out = _checklist_field(SIGN_OUT)
    post_op_notes = serializers.CharField(required=False, allow_blank=True, default="")


class ConsentCreateSerializer(serializers.Serializer):
    consent_type = serializers.CharField(max_length=64)
    consent_details = serializers.CharField(required=False, allow_blank=True, default="")
    risks_explained = serializers.BooleanField(required=False, default=False)
    alternatives_explained = serializers.BooleanField(required=False, default=False)
    patient_signature = serializers.CharField(max_length=255)
    witness_name = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")
    witness_signature = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")


class SurgicalConsentSerializer(serializers.ModelSerializer):
    surgery_id = serializers.UUIDField(read_only=True)
    patient_id = serializers.UUIDField(read_only=True)
    consented_by_id = serializers.IntegerField(read_only=True, allow_null=True)

    class Meta:
        model = SurgicalConsent
        fields = [
            "id",
            "surgery_id",
            "patient_id",
            "consent_type",
            "consent_details",
            "risks_explained",
            "alternatives_explained",
            "patient_signature",
            "witness_name",
            "witness_signature",
            "consented_by_id",
            "consented_at",
        ]
        read_only_fields = fields


class SurgerySerializer(serializers.ModelSerializer):
    patient = PatientBriefSerializer(read_only=True)
    surgeon_id = serializers.IntegerField(read_only=True, allow_null=True)
    surgeon_name = serializers.SerializerMethodField()
    consultation_id = serializers.UUIDField(read_only=True, allow_null=True)
    consents = SurgicalConsentSerializer(many=True, read_only=True)

    class Meta:
        model = Surgery
        fields = [
            "id",
            "patient",
            "surgeon_id",
            "surgeon_name",
            "consultation_id",
            "surgery_type",
            "surgery_name",
            "scheduled_date",
            "scheduled_time",
            "duration_minutes",
            "operating_room",
            "pre_op_assessment",
            "pre_op_tests_completed",
            "who_checklist_completed",
            "who_checklist",
            "intra_op_notes",
            "post_op_notes",
            "complications",
            "status",
            "consents",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def get_surgeon_name(self, obj) -> str:
        return display_name(obj.surgeon) if obj.surgeon_id else ""
