# registry_core/inpatient/api/serializers.py
from __future__ import annotations

from rest_framework import serializers

from registry_core.inpatient.models import IcuAdmission, IcuProgressNote, RecoveryStatus, WardAdmission
from registry_core.patients.api.serializers import PatientBriefSerializer


class AdmitSerializer(serializers.Serializer):
    """Direct admission: patient + bed + reason."""
    patient_id = serializers.UUIDField()
    bed_number = serializers.CharField(max_length=16, required=False, allow_blank=True, default="")
    admission_reason = serializers.CharField(required=False, allow_blank=True, default="")


class IcuAdmitSerializer(AdmitSerializer):
    bed_number = serializers.CharField(max_length=16)


class BedAssignmentSerializer(serializers.Serializer):
    """Post-op transfer from a surgery."""
    bed_number = serializers.CharField(max_length=16, required=False, allow_blank=True, default="")


class IcuBedAssignmentSerializer(BedAssignmentSerializer):
    bed_number = serializers.CharField(max_length=16)


class IcuDischargeSerializer(serializers.Serializer):
    ward_bed_number = serializers.CharField(max_length=16, required=False, allow_blank=True, default="")


class WardDischargeSerializer(serializers.Serializer):
    discharge_notes = serializers.CharField(required=False, allow_blank=True, default="")


class ProgressNoteCreateSerializer(serializers.Serializer):
    vitals_summary = serializers.CharField(required=False, allow_blank=True, default="")
    medications_given = serializers.CharField(required=False, allow_blank=True, default="")
    observations = serializers.CharField(required=False, allow_blank=True, default="")
    complications = serializers.CharField(required=False, allow_blank=True, default="")
    recovery_status = serializers.ChoiceField(choices=RecoveryStatus.choices, required=False, default=RecoveryStatus.STABLE)
    plan = serializers.CharField(required=False, allow_blank=True, default="")


class ProgressNoteSerializer(serializers.ModelSerializer):
    icu_admission_id = serializers.UUIDField(read_only=True)
    recorded_by_id = serializers.IntegerField(read_only=True, allow_null=True)

    class Meta:
        model = IcuProgressNote
        fields = [
            "id",
            "icu_admission_id",
            "recorded_by_id",
            "vitals_summary",
            "medications_given",
            "observations",
            "complications",
            "recovery_status",
            "plan",
            "created_at",
        ]
        read_only_fields = fields


class IcuAdmissionSerializer(serializers.ModelSerializer):
    patient = PatientBriefSerializer(read_only=True)
    surgery_id = serializers.UUIDField(read_only=True, allow_null=True)
    admitted_by_id = serializers.IntegerField(read_only=True, allow_null=True)

    class Meta:
        model = IcuAdmission
        fields = [
            "id",
            "patient",
            "surgery_id",
            "admitted_by_id",
            "bed_number",
            "admission_reason",
            "status",
            "admitted_at",
            "discharged_at",
        ]
        read_only_fields = fields


class WardAdmissionSerializer(serializers.ModelSerializer):
    patient = PatientBriefSerializer(read_only=True)
    surgery_id = serializers.UUIDField(read_only=True, allow_null=True)
    icu_admission_id = serializers.UUIDField(read_only=True, allow_null=True)
    admitted_by_id = serializers.IntegerField(read_only=True, allow_null=True)

    class Meta:
        model = WardAdmission
        fields = [
            "id",
            "patient",
            "surgery_id",
            "icu_admission_id",
            "admitted_by_id",
            "bed_number",
            "admission_reason",
            "source",
            "status",
            "admitted_at",
            "discharged_at",
            "discharge_notes",
        ]
        read_only_fields = fields


class BedBoardSerializer(serializers.Serializer):
    unit = serializers.CharField()
    beds = serializers.ListField(child=serializers.CharField())
    available = serializers.ListField(child=serializers.CharField())
