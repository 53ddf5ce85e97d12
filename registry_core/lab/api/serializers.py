# registry_core/lab/api/serializers.py
from __future__ import annotations

from rest_framework import serializers

from registry_core.lab.models import LabPriority, LabResult, LabTest
from registry_core.patients.api.serializers import PatientBriefSerializer


class LabOrderSerializer(serializers.Serializer):
    patient_id = serializers.UUIDField()
    test_type = serializers.CharField(max_length=64)
    test_name = serializers.CharField(max_length=255)
    priority = serializers.ChoiceField(choices=LabPriority.choices, required=False, default=LabPriority.ROUTINE)
    notes = serializers.CharField(required=False, allow_blank=True, default="")
    consultation_id = serializers.UUIDField(required=False, allow_null=True)


class LabResultInputSerializer(serializers.Serializer):
    parameter_name = serializers.CharField(max_length=128, required=False, allow_blank=True, default="")
    value = serializers.CharField(max_length=128, required=False, allow_blank=True, default="")
    unit = serializers.CharField(max_length=32, required=False, allow_blank=True, default="")
    reference_range = serializers.CharField(max_length=64, required=False, allow_blank=True, default="")
    is_abnormal = serializers.BooleanField(required=False, default=False)
    notes = serializers.CharField(required=False, allow_blank=True, default="")


class LabResultsEntrySerializer(serializers.Serializer):
    # Blank rows are accepted here and dropped by the service.
    results = LabResultInputSerializer(many=True)


class LabCancelSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, default="")


class LabResultSerializer(serializers.ModelSerializer):
    entered_by_id = serializers.IntegerField(read_only=True, allow_null=True)

    class Meta:
        model = LabResult
        fields = [
            "id",
            "parameter_name",
            "value",
            "unit",
            "reference_range",
            "is_abnormal",
            "notes",
            "entered_by_id",
            "created_at",
        ]
        read_only_fields = fields


class LabTestSerializer(serializers.ModelSerializer):
    patient = PatientBriefSerializer(read_only=True)
    ordered_by_id = serializers.IntegerField(read_only=True, allow_null=True)
    consultation_id = serializers.UUIDField(read_only=True, allow_null=True)
    results = LabResultSerializer(many=True, read_only=True)

    class Meta:
        model = LabTest
        fields = [
            "id",
            "patient",
            "ordered_by_id",
            "consultation_id",
            "test_type",
            "test_name",
            "priority",
            "status",
            "notes",
            "ordered_at",
            "completed_at",
            "results",
        ]
        read_only_fields = fields
