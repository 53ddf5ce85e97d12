# registry_core/patients/api/serializers.py
from __future__ import annotations

from django.utils import timezone
from rest_framework import serializers

from registry_core.patients.models import Patient

SERVER_OWNED = ("id", "patient_number", "registered_by", "created_at", "updated_at")


class StringListField(serializers.ListField):
    child = serializers.CharField(max_length=255, allow_blank=False, trim_whitespace=True)


class PatientWriteSerializer(serializers.ModelSerializer):
    """
    Register (POST) and correct (PATCH) contract.
    patient_number is generated; registered_by comes from the caller.
    """
    allergies = StringListField(required=False)
    chronic_conditions = StringListField(required=False)

    class Meta:
        model = Patient
        exclude = SERVER_OWNED

    def validate_date_of_birth(self, value):
        if value and value > timezone.localdate():
            raise serializers.ValidationError("Date of birth cannot be in the future.")
        return value

    def validate(self, attrs):
        if self.partial and not attrs:
            raise serializers.ValidationError("At least one field is required.")

        admission = attrs.get("admission_date", getattr(self.instance, "admission_date", None))
        discharge = attrs.get("discharge_date", getattr(self.instance, "discharge_date", None))
        if admission and discharge and discharge < admission:
            raise serializers.ValidationError({"discharge_date": "Discharge date cannot precede admission date."})
        return attrs


class PatientSerializer(serializers.ModelSerializer):
    full_name = serializers.CharField(read_only=True)
    registered_by_id = serializers.IntegerField(read_only=True, allow_null=True)

    class Meta:
        model = Patient
        exclude = ("registered_by",)


class PatientBriefSerializer(serializers.ModelSerializer):
    """Embedded patient reference for clinical listings."""
    full_name = serializers.CharField(read_only=True)

    class Meta:
        model = Patient
        fields = ["id", "patient_number", "first_name", "last_name", "full_name", "date_of_birth", "gender", "phone"]
        read_only_fields = fields
