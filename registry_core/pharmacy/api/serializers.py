# registry_core/pharmacy/api/serializers.py
from __future__ import annotations

from rest_framework import serializers

from registry_core.iam.models import display_name
from registry_core.patients.api.serializers import PatientBriefSerializer
from registry_core.pharmacy.models import Prescription, PrescriptionItem


class PrescriptionItemInputSerializer(serializers.Serializer):
    # Everything optional: the form submits empty rows, the service drops them.
    medication_name = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")
    dosage = serializers.CharField(max_length=128, required=False, allow_blank=True, default="")
    frequency = serializers.CharField(max_length=128, required=False, allow_blank=True, default="")
    duration = serializers.CharField(max_length=128, required=False, allow_blank=True, default="")
    quantity = serializers.IntegerField(required=False, allow_null=True, min_value=0, default=None)
    instructions = serializers.CharField(required=False, allow_blank=True, default="")


class PrescriptionCreateSerializer(serializers.Serializer):
    patient_id = serializers.UUIDField()
    consultation_id = serializers.UUIDField(required=False, allow_null=True)
    notes = serializers.CharField(required=False, allow_blank=True, default="")
    items = PrescriptionItemInputSerializer(many=True)


class PrescriptionItemSerializer(serializers.ModelSerializer):
    class Meta:
        model = PrescriptionItem
        fields = ["id", "medication_name", "dosage", "frequency", "duration", "quantity", "instructions"]
        read_only_fields = fields


class PrescriptionSerializer(serializers.ModelSerializer):
    patient = PatientBriefSerializer(read_only=True)
    prescribed_by_id = serializers.IntegerField(read_only=True, allow_null=True)
    prescribed_by_name = serializers.SerializerMethodField()
    dispensed_by_id = serializers.IntegerField(read_only=True, allow_null=True)
    consultation_id = serializers.UUIDField(read_only=True, allow_null=True)
    items = PrescriptionItemSerializer(many=True, read_only=True)

    class Meta:
        model = Prescription
        fields = [
            "id",
            "patient",
            "prescribed_by_id",
            "prescribed_by_name",
            "consultation_id",
            "status",
            "notes",
            "dispensed_by_id",
            "dispensed_at",
            "items",
            "created_at",
        ]
        read_only_fields = fields

    def get_prescribed_by_name(self, obj) -> str:
        return display_name(obj.prescribed_by) if obj.prescribed_by_id else ""
