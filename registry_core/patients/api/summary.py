# registry_core/patients/api/summary.py
from __future__ import annotations

from rest_framework import serializers

from registry_core.appointments.api.serializers import AppointmentSerializer, FollowUpSerializer
from registry_core.consultations.api.serializers import ConsultationSerializer
from registry_core.inpatient.api.serializers import IcuAdmissionSerializer, WardAdmissionSerializer
from registry_core.lab.api.serializers import LabTestSerializer
from registry_core.patients.api.serializers import PatientSerializer
from registry_core.pharmacy.api.serializers import PrescriptionSerializer
from registry_core.surgery.api.serializers import SurgerySerializer
from registry_core.vitals.api.serializers import VitalsSerializer


class PatientSummarySerializer(serializers.Serializer):
    """Patient record plus the most recent rows from each clinical module."""
    patient = PatientSerializer()
    vitals = VitalsSerializer(many=True)
    lab_tests = LabTestSerializer(many=True)
    prescriptions = PrescriptionSerializer(many=True)
    surgeries = SurgerySerializer(many=True)
    appointments = AppointmentSerializer(many=True)
    consultations = ConsultationSerializer(many=True)
    follow_ups = FollowUpSerializer(many=True)
    icu_admissions = IcuAdmissionSerializer(many=True)
    ward_admissions = WardAdmissionSerializer(many=True)
