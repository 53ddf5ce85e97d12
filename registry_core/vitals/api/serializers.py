# registry_core/vitals/api/serializers.py
from __future__ import annotations

from rest_framework import serializers

from registry_core.vitals.models import Vitals


class VitalsCreateSerializer(serializers.Serializer):
    patient_id = serializers.UUIDField()
    systolic_bp = serializers.IntegerField()
    diastolic_bp = serializers.IntegerField()
    heart_rate = serializers.IntegerField()
    oxygen_saturation = serializers.IntegerField(required=False, allow_null=True)
    temperature = serializers.DecimalField(max_digits=4, decimal_places=1, required=False, allow_null=True)
    weight = serializers.DecimalField(max_digits=5, decimal_places=1, required=False, allow_null=True)
    height = serializers.DecimalField(max_digits=5, decimal_places=1, required=False, allow_null=True)
    notes = serializers.CharField(required=False, allow_blank=True, default="")
    recorded_at = serializers.DateTimeField(required=False, allow_null=True)


class VitalsSerializer(serializers.ModelSerializer):
    patient_id = serializers.UUIDField(read_only=True)
    recorded_by_id = serializers.IntegerField(read_only=True, allow_null=True)
    bmi = serializers.DecimalField(max_digits=None, decimal_places=1, read_only=True, allow_null=True)

    class Meta:
        model = Vitals
        fields = [
            "id",
            "patient_id",
            "systolic_bp",
            "diastolic_bp",
            "heart_rate",
            "oxygen_saturation",
            "temperature",
            "weight",
            "height",
            "bmi",
            "notes",
            "recorded_by_id",
            "recorded_at",
            "created_at",
        ]
        read_only_fields = fields
